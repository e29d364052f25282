from datetime import datetime, timedelta, timezone

from BackEnd.core.clock import SystemClock, fmt_hms, fmt_mmss, parse_iso, seconds_between, to_iso


def test_seconds_between_floors_and_clamps():
	start = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
	assert seconds_between(start, start + timedelta(seconds=59.9)) == 59
	assert seconds_between(start, start - timedelta(seconds=30)) == 0


def test_iso_strings_are_utc():
	local = datetime(2024, 3, 4, 11, 0, tzinfo=timezone(timedelta(hours=2)))
	assert to_iso(local) == "2024-03-04T09:00:00+00:00"
	assert parse_iso("2024-03-04T09:00:00") == datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
	assert parse_iso(None) is None


def test_system_clock_never_goes_backwards():
	clock = SystemClock()
	clock._last = datetime.now(timezone.utc) + timedelta(hours=1)
	assert clock.now() == clock._last


def test_formatting():
	assert fmt_hms(3725) == "01:02:05"
	assert fmt_mmss(1500) == "25:00"
	assert fmt_mmss(6000) == "100:00"
