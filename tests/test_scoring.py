import unittest

from forecast_factories import make_hour, local
from run_planner.domain import Mode, Rating
from run_planner.scoring import (
    PROFILES,
    ModeProfile,
    pavement_temperature,
    rating_for,
    round_score,
    score_hour,
    sub_scores,
)

PERFECT_DOG_WALK = dict(temperature=55.0, feels_like=55.0, uv_index=2.0, cloud_cover=50.0)


def score(mode, **overrides) -> float:
    return score_hour(make_hour(**overrides), mode).score


class TestProfiles(unittest.TestCase):
    def test_every_mode_has_weights_summing_to_one(self):
        for mode in Mode:
            self.assertAlmostEqual(sum(PROFILES[mode].weights.values()), 1.0)

    def test_profile_rejects_bad_weights(self):
        running = PROFILES[Mode.RUNNING]
        with self.assertRaises(ValueError):
            ModeProfile(
                mode=Mode.RUNNING,
                temperature=running.temperature,
                wind=running.wind,
                precipitation=running.precipitation,
                weather_codes=running.weather_codes,
                weights={"temperature": 0.5},
            )

    def test_sub_scores_cover_exactly_the_weighted_factors(self):
        hour = make_hour()
        self.assertEqual(set(sub_scores(hour, Mode.DOG_WALKING)), set(PROFILES[Mode.DOG_WALKING].weights))
        self.assertIn("cloud_cover", sub_scores(hour, Mode.STARGAZING))
        self.assertNotIn("humidity", sub_scores(hour, Mode.STARGAZING))


class TestRunningScore(unittest.TestCase):
    def test_perfect_conditions(self):
        result = score_hour(make_hour(), Mode.RUNNING)
        self.assertEqual(result.score, 99.2)
        self.assertEqual(result.rating, Rating.EXCELLENT)
        self.assertEqual(result.time, local(12))

    def test_each_bad_factor_lowers_the_score(self):
        perfect = score(Mode.RUNNING)
        self.assertLess(score(Mode.RUNNING, temperature=95.0, feels_like=100.0), 65)
        self.assertLess(score(Mode.RUNNING, precipitation_probability=90.0, weather_code=65), perfect)
        self.assertLess(score(Mode.RUNNING, wind_speed=40.0), perfect)
        self.assertLess(score(Mode.RUNNING, humidity=95.0), perfect)
        self.assertLess(score(Mode.RUNNING, uv_index=10.0), perfect)

    def test_night_factor_applies(self):
        day = score(Mode.RUNNING)
        night = score(Mode.RUNNING, is_lit=False, light_factor=0.3)
        self.assertLess(night, day * 0.5)

    def test_mixed_bad_conditions_are_poor(self):
        result = score_hour(
            make_hour(temperature=95.0, humidity=90.0, wind_speed=30.0,
                      precipitation_probability=70.0, weather_code=63),
            Mode.RUNNING,
        )
        self.assertLess(result.score, 45)
        self.assertEqual(result.rating, Rating.POOR)

    def test_accepts_mode_value_strings(self):
        self.assertEqual(score("running"), score(Mode.RUNNING))


class TestWalkingScore(unittest.TestCase):
    def test_perfect_walking_temperatures(self):
        self.assertGreaterEqual(score(Mode.WALKING, temperature=60.0, feels_like=60.0), 80)

    def test_cold_and_wind_penalized(self):
        mild = score(Mode.WALKING, temperature=60.0, feels_like=60.0)
        self.assertLess(score(Mode.WALKING, temperature=20.0, feels_like=15.0), mild)
        self.assertLess(score(Mode.WALKING, temperature=60.0, feels_like=60.0, wind_speed=30.0), mild)


class TestCyclingScore(unittest.TestCase):
    def test_perfect_cycling_conditions(self):
        self.assertGreaterEqual(score(Mode.CYCLING, temperature=65.0, feels_like=65.0), 75)

    def test_fog_penalized_more_than_running(self):
        self.assertEqual(score(Mode.RUNNING, weather_code=45), 94.7)
        self.assertEqual(score(Mode.CYCLING, weather_code=45), 88.2)

    def test_more_wind_sensitive_than_running(self):
        self.assertLess(score(Mode.CYCLING, wind_speed=15.0), score(Mode.RUNNING, wind_speed=15.0))

    def test_harsher_precipitation_curve(self):
        self.assertLessEqual(
            score(Mode.CYCLING, precipitation_probability=50.0),
            score(Mode.RUNNING, precipitation_probability=50.0),
        )


class TestDogWalkingScore(unittest.TestCase):
    def test_pavement_temperature_model(self):
        self.assertEqual(pavement_temperature(make_hour(temperature=80.0, uv_index=8.0, cloud_cover=0.0)), 120.0)
        self.assertEqual(pavement_temperature(make_hour(temperature=80.0, uv_index=8.0, cloud_cover=100.0)), 80.0)

    def test_perfect_dog_walk(self):
        self.assertGreaterEqual(score(Mode.DOG_WALKING, **PERFECT_DOG_WALK), 70)

    def test_hot_pavement_is_poor(self):
        hot = score(Mode.DOG_WALKING, temperature=90.0, feels_like=95.0, uv_index=10.0, cloud_cover=0.0)
        self.assertLess(hot, score(Mode.DOG_WALKING, **PERFECT_DOG_WALK))
        self.assertLess(hot, 45)

    def test_cold_pavement_penalized(self):
        cold = score(Mode.DOG_WALKING, temperature=15.0, feels_like=10.0, uv_index=0.0)
        self.assertLess(cold, score(Mode.DOG_WALKING, **PERFECT_DOG_WALK))

    def test_more_uv_sensitive_than_running(self):
        self.assertLess(score(Mode.DOG_WALKING, uv_index=8.0), score(Mode.RUNNING, uv_index=8.0))


class TestStargazingScore(unittest.TestCase):
    DARK_CLEAR = dict(time=local(23), is_lit=False, light_factor=1.0, cloud_cover=0.0, weather_code=0)

    def test_clear_dark_night(self):
        result = score_hour(
            make_hour(**self.DARK_CLEAR, visibility=50000.0, temperature=60.0, wind_speed=3.0, humidity=30.0),
            Mode.STARGAZING,
        )
        self.assertEqual(result.score, 100.0)
        self.assertEqual(result.rating, Rating.EXCELLENT)

    def test_overcast_penalized_heavily(self):
        clear = score(Mode.STARGAZING, **self.DARK_CLEAR)
        overcast = score(Mode.STARGAZING, **{**self.DARK_CLEAR, "cloud_cover": 90.0, "weather_code": 3})
        self.assertEqual(overcast, 52.9)
        self.assertLess(overcast, clear * 0.75)

    def test_daylight_factor_nearly_zeroes_score(self):
        self.assertLess(score(Mode.STARGAZING, cloud_cover=0.0, visibility=50000.0, light_factor=0.05), 10)

    def test_low_visibility_penalized(self):
        clear = score(Mode.STARGAZING, **self.DARK_CLEAR, visibility=50000.0)
        hazy = score(Mode.STARGAZING, **self.DARK_CLEAR, visibility=2000.0)
        self.assertLess(hazy, clear)

    def test_twilight_factor(self):
        twilight = score(Mode.STARGAZING, is_lit=False, light_factor=0.3, cloud_cover=0.0, visibility=50000.0)
        self.assertGreater(twilight, 15)
        self.assertLess(twilight, 40)


class TestRatings(unittest.TestCase):
    def test_band_edges(self):
        self.assertEqual(rating_for(80.0), Rating.EXCELLENT)
        self.assertEqual(rating_for(79.9), Rating.GOOD)
        self.assertEqual(rating_for(65.0), Rating.GOOD)
        self.assertEqual(rating_for(64.9), Rating.FAIR)
        self.assertEqual(rating_for(45.0), Rating.FAIR)
        self.assertEqual(rating_for(44.9), Rating.POOR)

    def test_scores_stay_in_range(self):
        worst = score_hour(
            make_hour(temperature=120.0, feels_like=130.0, humidity=100.0, wind_speed=80.0,
                      precipitation_probability=100.0, weather_code=99, uv_index=12.0),
            Mode.RUNNING,
        )
        self.assertGreaterEqual(worst.score, 0.0)
        self.assertEqual(worst.rating, Rating.POOR)


class TestRoundScore(unittest.TestCase):
    def test_halves_round_up(self):
        self.assertEqual(round_score(4.25), 4.3)
        self.assertEqual(round_score(2.25), 2.3)
        self.assertEqual(round_score(0.75), 0.8)

    def test_other_values_round_to_nearest(self):
        self.assertEqual(round_score(4.24), 4.2)
        self.assertEqual(round_score(99.16), 99.2)
        self.assertEqual(round_score(0.0), 0.0)
        self.assertEqual(round_score(100.0), 100.0)


if __name__ == "__main__":
    unittest.main()
