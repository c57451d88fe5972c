import unittest
from datetime import datetime, timezone

from starshot.infrastructure.utils.timeutils import coerce_datetime, from_epoch


class CoerceDatetimeTests(unittest.TestCase):
    def test_epoch_seconds_and_milliseconds(self):
        expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(from_epoch(1704067200), expected)
        self.assertEqual(from_epoch(1704067200000), expected)
        self.assertEqual(coerce_datetime("1704067200000"), expected)

    def test_compact_date_string_is_not_an_epoch(self):
        self.assertEqual(coerce_datetime("20240108"), datetime(2024, 1, 8, tzinfo=timezone.utc))

    def test_iso_strings(self):
        self.assertEqual(coerce_datetime("2024-01-08"), datetime(2024, 1, 8, tzinfo=timezone.utc))
        self.assertEqual(
            coerce_datetime("2024-01-08T10:00:00+02:00").astimezone(timezone.utc),
            datetime(2024, 1, 8, 8, 0, tzinfo=timezone.utc),
        )

    def test_uninterpretable_values(self):
        for value in (None, True, "", "   ", "not a date", [], {}):
            with self.subTest(value=value):
                self.assertIsNone(coerce_datetime(value))


if __name__ == "__main__":
    unittest.main()
