from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from core.heatmap import aggregate, calendar_to_wire
from core.intervals import build_intervals
from core.models import CategoryTotals, StatusInterval, StatusKind, StatusSample
from core.report import build_report
from core.sample_data import generate_samples

from conftest import sample


def _offline(start: str, end: str) -> StatusInterval:
    return StatusInterval(StatusKind.OFFLINE, datetime.fromisoformat(start), datetime.fromisoformat(end))


def test_short_outage_on_one_day():
    samples = [
        sample("online", "2024-05-10T08:00:00"),
        sample("online", "2024-05-10T08:10:00"),
        sample("offline", "2024-05-10T08:10:00"),
        sample("offline", "2024-05-10T08:40:00"),
        sample("online", "2024-05-10T08:40:00"),
    ]
    intervals = build_intervals(samples)
    offline = [i for i in intervals if i.status is StatusKind.OFFLINE]
    assert len(offline) == 1 and offline[0].minutes == 30

    totals, calendar = aggregate(intervals)
    assert totals.offline == 30
    assert totals.online == 10
    assert calendar["2024"]["2024-05-10"] == 30


def test_outage_over_several_days_is_split_at_midnight():
    _, calendar = aggregate([_offline("2024-01-01T23:00:00", "2024-01-03T02:00:00")])
    assert calendar["2024"]["2024-01-01"] == 60
    assert calendar["2024"]["2024-01-02"] == 1440
    assert calendar["2024"]["2024-01-03"] == 120
    assert calendar["2024"]["2024-01-04"] == 0


def test_empty_history():
    totals, calendar = aggregate([])
    assert totals == CategoryTotals(0, 0, 0)
    assert calendar == {}


def test_single_dangling_sample_still_builds_its_year():
    report = build_report([sample("offline", "2023-06-01T12:00:00")])
    assert report.intervals == []
    assert report.totals == CategoryTotals()
    assert list(report.calendar) == ["2023"]
    assert len(report.calendar["2023"]) == 365
    assert sum(report.calendar["2023"].values()) == 0


def test_outages_on_the_same_day_add_up():
    _, calendar = aggregate([
        _offline("2024-02-02T01:00:00", "2024-02-02T01:10:00"),
        _offline("2024-02-02T13:00:00", "2024-02-02T13:20:00"),
    ])
    assert calendar["2024"]["2024-02-02"] == 30


def test_outage_across_new_year_and_leap_day():
    _, calendar = aggregate([_offline("2023-12-31T22:00:00", "2024-03-01T01:00:00")])
    assert list(calendar) == ["2023", "2024"]
    assert calendar["2023"]["2023-12-31"] == 120
    assert calendar["2024"]["2024-01-01"] == 1440
    assert calendar["2024"]["2024-02-29"] == 1440
    assert calendar["2024"]["2024-03-01"] == 60
    assert calendar["2024"]["2024-03-02"] == 0


def test_only_offline_intervals_touch_the_calendar():
    intervals = [
        StatusInterval(StatusKind.ONLINE, datetime(2024, 1, 1), datetime(2024, 1, 2)),
        StatusInterval(StatusKind.UNKNOWN, datetime(2024, 1, 2), datetime(2024, 1, 2, 3)),
    ]
    totals, calendar = aggregate(intervals)
    assert totals == CategoryTotals(online=1440, offline=0, unknown=180)
    assert all(v == 0 for days in calendar.values() for v in days.values())


def test_sub_minute_remainders_are_truncated_and_conserved():
    interval = _offline("2024-04-01T23:59:30", "2024-04-02T00:00:45")
    totals, calendar = aggregate([interval])
    assert totals.offline == 1
    assert calendar["2024"]["2024-04-01"] + calendar["2024"]["2024-04-02"] == 1
    assert calendar["2024"]["2024-04-01"] == 0


def test_interval_ending_in_a_later_year_extends_the_calendar():
    _, calendar = aggregate(
        [_offline("2022-12-31T23:00:00", "2023-01-01T00:30:00")],
        span=(datetime(2022, 12, 31, 23), datetime(2022, 12, 31, 23)),
    )
    assert calendar["2023"]["2023-01-01"] == 30


def test_generated_history_properties():
    samples = generate_samples(300, start=datetime(2023, 1, 1), seed=7)
    report = build_report(samples)

    first_year = min(s.timestamp for s in samples).year
    last_year = max(s.timestamp for s in samples).year

    # every day of every year present, in order, no gaps
    assert list(report.calendar) == [str(y) for y in range(first_year, last_year + 1)]
    for year, days in report.calendar.items():
        keys = list(days)
        assert keys == sorted(keys)
        expected = date(int(year), 1, 1)
        for key in keys:
            assert key == expected.isoformat()
            expected += timedelta(days=1)
        assert expected == date(int(year) + 1, 1, 1)

    values = [v for days in report.calendar.values() for v in days.values()]
    assert all(0 <= v <= 1440 for v in values)
    assert all(v >= 0 for v in (report.totals.online, report.totals.offline, report.totals.unknown))

    offline_minutes = sum(i.minutes for i in report.intervals if i.status is StatusKind.OFFLINE)
    assert sum(values) == offline_minutes == report.totals.offline

    again = build_report(samples)
    assert again.totals == report.totals
    assert again.calendar == report.calendar


def test_calendar_to_wire_shape():
    _, calendar = aggregate([_offline("2024-01-01T10:00:00", "2024-01-01T10:05:00")])
    wire = calendar_to_wire(calendar)
    assert len(wire) == 1
    year, days = wire[0]
    assert year == "2024"
    assert days[0] == ["2024-01-01", 5]
    assert days[-1] == ["2024-12-31", 0]
    assert len(days) == 366


PARIS = ZoneInfo("Europe/Paris")


def _paris(status: str, ts: str) -> StatusSample:
    return StatusSample.from_record(status, ts, PARIS)


def test_spring_forward_outage_counts_elapsed_minutes():
    # 2024-03-31 02:00 CET jumps to 03:00 CEST at 01:00Z
    report = build_report([
        _paris("offline", "2024-03-31T00:30:00Z"),
        _paris("online", "2024-03-31T01:30:00Z"),
    ])
    assert report.totals.offline == 60
    assert report.calendar["2024"]["2024-03-31"] == 60


def test_spring_forward_day_holds_23_hours():
    report = build_report([
        _paris("offline", "2024-03-30T21:00:00Z"),  # 22:00 CET
        _paris("online", "2024-03-31T23:00:00Z"),  # 01:00 CEST on 04-01
    ])
    days = report.calendar["2024"]
    assert days["2024-03-30"] == 120
    assert days["2024-03-31"] == 1380
    assert days["2024-04-01"] == 60
    assert sum(days.values()) == report.totals.offline == 1560


def test_fall_back_keeps_samples_in_real_order():
    # 2024-10-27 03:00 CEST falls back to 02:00 CET at 01:00Z; 02:xx happens twice
    samples = [
        _paris("offline", "2024-10-27T03:00:00Z"),
        _paris("online", "2024-10-27T01:10:00Z"),
        _paris("offline", "2024-10-27T00:50:00Z"),
        _paris("online", "2024-10-27T00:00:00Z"),
    ]
    report = build_report(samples)
    assert [(i.status, i.minutes) for i in report.intervals] == [
        (StatusKind.ONLINE, 50),
        (StatusKind.OFFLINE, 20),
        (StatusKind.ONLINE, 110),
    ]
    assert report.totals == CategoryTotals(online=160, offline=20, unknown=0)
    assert report.calendar["2024"]["2024-10-27"] == 20


def test_fall_back_day_holds_25_hours():
    report = build_report([
        _paris("offline", "2024-10-25T22:00:00Z"),  # 2024-10-26 00:00 CEST
        _paris("online", "2024-10-27T23:00:00Z"),  # 2024-10-28 00:00 CET
    ])
    days = report.calendar["2024"]
    assert days["2024-10-26"] == 1440
    assert days["2024-10-27"] == 1500
    assert days["2024-10-28"] == 0
