import datetime as dt
import unittest

from forecast_factories import SUN_TABLE, local
from run_planner.daylight import compute_darkness, compute_daylight, light_for_mode
from run_planner.domain import Mode


class TestComputeDaylight(unittest.TestCase):
    def test_mid_day_is_full_daylight(self):
        info = compute_daylight(local(12), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 1.0)

    def test_just_after_sunrise_is_lit_twilight(self):
        info = compute_daylight(local(6, 10), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 0.6)

    def test_just_before_sunset_is_lit_twilight(self):
        info = compute_daylight(local(20, 15), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 0.6)

    def test_pre_dawn_and_dusk_are_unlit_twilight(self):
        for ts in (local(5, 45), local(20, 45)):
            info = compute_daylight(ts, SUN_TABLE)
            self.assertFalse(info.is_lit)
            self.assertEqual(info.factor, 0.6)

    def test_twilight_band_includes_its_edge(self):
        info = compute_daylight(local(6, 30), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 0.6)
        self.assertEqual(compute_daylight(local(21, 0), SUN_TABLE).factor, 0.6)

    def test_exact_sunrise_and_sunset_are_lit_twilight(self):
        for ts in (local(6), local(20, 30)):
            info = compute_daylight(ts, SUN_TABLE)
            self.assertTrue(info.is_lit)
            self.assertEqual(info.factor, 0.6)

    def test_deep_night(self):
        info = compute_daylight(local(2), SUN_TABLE)
        self.assertFalse(info.is_lit)
        self.assertEqual(info.factor, 0.3)

    def test_unknown_day_defaults_to_daylight(self):
        info = compute_daylight(local(12, day=16), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 1.0)

    def test_empty_table_never_raises(self):
        self.assertEqual(compute_daylight(local(3), {}).factor, 1.0)


class TestComputeDarkness(unittest.TestCase):
    def test_deep_night_scores_fully(self):
        info = compute_darkness(local(23), SUN_TABLE)
        self.assertFalse(info.is_lit)
        self.assertEqual(info.factor, 1.0)

    def test_dusk_is_unlit_twilight(self):
        info = compute_darkness(local(20, 45), SUN_TABLE)
        self.assertFalse(info.is_lit)
        self.assertEqual(info.factor, 0.3)

    def test_just_after_sunrise_is_lit_twilight(self):
        info = compute_darkness(local(6, 15), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 0.3)

    def test_exact_sunrise_and_sunset_are_lit_twilight(self):
        for ts in (local(6), local(20, 30)):
            info = compute_darkness(ts, SUN_TABLE)
            self.assertTrue(info.is_lit)
            self.assertEqual(info.factor, 0.3)

    def test_well_before_dawn_is_full_darkness(self):
        self.assertEqual(compute_darkness(local(4), SUN_TABLE).factor, 1.0)

    def test_mid_day_is_nearly_worthless(self):
        info = compute_darkness(local(12), SUN_TABLE)
        self.assertTrue(info.is_lit)
        self.assertEqual(info.factor, 0.05)

    def test_unknown_day(self):
        info = compute_darkness(local(23, day=16), SUN_TABLE)
        self.assertFalse(info.is_lit)
        self.assertEqual(info.factor, 0.05)


class TestLightForMode(unittest.TestCase):
    def test_stargazing_uses_darkness(self):
        self.assertEqual(light_for_mode(local(23), SUN_TABLE, Mode.STARGAZING).factor, 1.0)
        self.assertEqual(light_for_mode(local(23), SUN_TABLE, "stargazing").factor, 1.0)

    def test_other_modes_use_daylight(self):
        for mode in (Mode.RUNNING, Mode.WALKING, Mode.CYCLING, Mode.DOG_WALKING):
            self.assertEqual(light_for_mode(local(23), SUN_TABLE, mode).factor, 0.3)

    def test_lookup_uses_local_date(self):
        # 03:00 UTC on the 16th is still the evening of the 15th in Chicago
        utc_ts = dt.datetime(2025, 6, 16, 3, 0, tzinfo=dt.timezone.utc)
        self.assertEqual(compute_daylight(utc_ts.astimezone(local(0).tzinfo), SUN_TABLE).factor, 0.3)


if __name__ == "__main__":
    unittest.main()
