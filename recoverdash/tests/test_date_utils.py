import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from recoverdash.date_utils import coerce_epoch_ms, datetime_to_epoch_ms, epoch_ms_to_datetime, to_iso
from recoverdash.history.types import VersionRecord


class EpochCoercionTests(unittest.TestCase):
    def test_positive_numbers_are_accepted(self) -> None:
        self.assertEqual(coerce_epoch_ms(1700000001000), 1700000001000)
        self.assertEqual(coerce_epoch_ms(1700000001000.7), 1700000001000)

    def test_unusable_values_are_missing(self) -> None:
        for value in (None, True, "1700000001000", 0, -1, -86400000, float("nan"), 253402300799000):
            with self.subTest(value=value):
                self.assertIsNone(coerce_epoch_ms(value))


class EpochConversionTests(unittest.TestCase):
    def test_version_record_reports_epoch_ms(self) -> None:
        stamp = epoch_ms_to_datetime(1771236060123)
        record = VersionRecord(source=Path("a.py"), timestamp=stamp, folder_id="-1")
        self.assertEqual(record.timestamp_ms, 1771236060123)
        self.assertEqual(to_iso(stamp), "2026-02-16T10:01:00.123Z")

    def test_naive_datetimes_are_read_as_utc(self) -> None:
        naive = datetime(2024, 1, 1, 0, 0, 0)
        self.assertEqual(datetime_to_epoch_ms(naive), 1704067200000)
        shifted = datetime(2024, 1, 1, 2, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(datetime_to_epoch_ms(shifted), 1704067200000)
        self.assertEqual(to_iso(None), "")


if __name__ == "__main__":
    unittest.main()
