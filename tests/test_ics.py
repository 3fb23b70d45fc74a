import datetime as dt
import unittest

from forecast_factories import local
from run_planner.domain import Mode
from run_planner.ics import CalendarEvent, activity_title, generate_ics

STAMP = dt.datetime(2025, 6, 14, 9, 30, tzinfo=dt.timezone.utc)


class TestGenerateIcs(unittest.TestCase):
    def _render(self, **overrides):
        event = CalendarEvent(
            title=overrides.pop("title", "Run — Lakefront Trail"),
            start=overrides.pop("start", local(7)),
            duration_minutes=overrides.pop("duration_minutes", 45),
            description=overrides.pop("description", "Score 92/100"),
            location=overrides.pop("location", "Lakefront Trail"),
        )
        return generate_ics(event, now=STAMP, uid="abc123")

    def test_structure_and_utc_times(self):
        ics = self._render()
        lines = ics.split("\r\n")
        self.assertEqual(lines[0], "BEGIN:VCALENDAR")
        self.assertIn("VERSION:2.0", lines)
        self.assertIn("UID:abc123@run-planner", lines)
        self.assertIn("DTSTAMP:20250614T093000Z", lines)
        self.assertIn("DTSTART:20250615T120000Z", lines)
        self.assertIn("DTEND:20250615T124500Z", lines)
        self.assertIn("SUMMARY:Run — Lakefront Trail", lines)
        self.assertEqual(lines[-2], "END:VCALENDAR")

    def test_crlf_line_endings(self):
        ics = self._render()
        self.assertTrue(ics.endswith("\r\n"))
        self.assertNotIn("\n", ics.replace("\r\n", ""))

    def test_reminders_before_start_and_at_finish(self):
        ics = self._render(duration_minutes=90)
        self.assertEqual(ics.count("BEGIN:VALARM"), 2)
        self.assertIn("TRIGGER:-PT15M", ics)
        self.assertIn("TRIGGER:PT90M", ics)
        self.assertIn("DESCRIPTION:Time to finish your run — lakefront trail", ics)

    def test_text_values_are_escaped(self):
        ics = self._render(description="Windy; bring a layer, gloves\nand water", location="Pier 3, Navy Pier")
        self.assertIn("DESCRIPTION:Windy\\; bring a layer\\, gloves\\nand water", ics)
        self.assertIn("LOCATION:Pier 3\\, Navy Pier", ics)

    def test_random_uid_by_default(self):
        event = CalendarEvent(title="Walk — Park", start=local(7), duration_minutes=30)
        first = generate_ics(event, now=STAMP)
        second = generate_ics(event, now=STAMP)
        self.assertNotEqual(first, second)


class TestActivityTitle(unittest.TestCase):
    def test_titles_per_mode(self):
        self.assertEqual(activity_title(Mode.RUNNING, "Park"), "Run — Park")
        self.assertEqual(activity_title("cycling", "Loop"), "Ride — Loop")
        self.assertEqual(activity_title(Mode.DOG_WALKING, "Block"), "Dog walk — Block")
        self.assertEqual(activity_title(Mode.STARGAZING, "Dunes"), "Stargazing — Dunes")


if __name__ == "__main__":
    unittest.main()
