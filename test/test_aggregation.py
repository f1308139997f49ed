# Copyright 2019 Joan Puig
# See LICENSE for details


import os
from datetime import date, datetime, timezone

import pytest

from VO2.activities import ActivityRecord
from VO2.aggregation import DailyAggregator, DailySeries, FITFileSkippedWarning
from VO2.decoder import FITFileContentWarning
from VO2.profile import Sport
from VO2.base_types import ENUM, FLOAT32, UINT32, UINT64
from test_common import activity_file, fit_file, fit_seconds, message_records, write_file


def run(day: int, vo2_max: float, hour: int = 8, sport: Sport = Sport.Running) -> ActivityRecord:
    return ActivityRecord(vo2_max=vo2_max, timestamp=datetime(2019, 5, day, hour, tzinfo=timezone.utc), sport=sport)


def test_zero_vo2_max_is_replaced():
    first = run(1, 0.0)
    second = run(1, 5.0, hour=18)
    series = DailyAggregator().add_all([first, second])

    assert series[date(2019, 5, 1)] is second


def test_lower_vo2_max_is_ignored():
    first = run(1, 5.0)
    second = run(1, 3.0, hour=18)
    series = DailyAggregator().add_all([first, second])

    assert series[date(2019, 5, 1)] is first


def test_first_record_kept_when_later_is_zero():
    first = run(1, 0.0)
    second = run(1, 0.0, hour=18)
    series = DailyAggregator().add_all([first, second])

    assert series[date(2019, 5, 1)] is first


def test_non_running_records_are_dropped():
    series = DailyAggregator().add_all([run(1, 60.0, sport=Sport.Cycling), run(2, 50.0, sport=Sport.Invalid), ActivityRecord(vo2_max=40.0)])
    assert len(series) == 0


def test_dates_are_ascending():
    series = DailyAggregator().add_all([run(9, 45.0), run(2, 44.0), run(5, 46.0), run(2, 47.0)])

    assert series.dates() == [date(2019, 5, 2), date(2019, 5, 5), date(2019, 5, 9)]
    assert list(series) == series.dates()
    assert [r.vo2_max for r in series.records()] == [47.0, 46.0, 45.0]
    assert date(2019, 5, 5) in series


def test_day_is_taken_in_utc():
    record = ActivityRecord(vo2_max=45.0, timestamp=datetime(2019, 5, 1, 23, 30, tzinfo=timezone.utc), sport=Sport.Running)
    series = DailyAggregator().add_all([record])
    assert series.dates() == [date(2019, 5, 1)]


def test_missing_timestamp_warns():
    aggregator = DailyAggregator()
    with pytest.warns(FITFileContentWarning):
        assert not aggregator.add(ActivityRecord(vo2_max=45.0, sport=Sport.Running), 'run.fit')
    assert len(aggregator.series) == 0


def test_to_frame():
    frame = DailyAggregator().add_all([run(3, 45.0), run(1, 44.0)]).to_frame()

    assert list(frame.index) == [date(2019, 5, 1), date(2019, 5, 3)]
    assert list(frame['vo2_max']) == [44.0, 45.0]
    assert frame.index.name == 'date'
    assert DailySeries().to_frame().empty


def test_scan_folder(fit_folder):
    write_file(fit_folder, 'a.fit', activity_file(time_created=datetime(2019, 5, 2, 7, tzinfo=timezone.utc), sport=1, vo2_max_raw=655360, heart_rate=60))
    write_file(fit_folder, 'b.fit', activity_file(time_created=datetime(2019, 5, 1, 7, tzinfo=timezone.utc), sport=1, vo2_max_raw=700000))
    write_file(fit_folder, 'c.fit', activity_file(time_created=datetime(2019, 5, 1, 9, tzinfo=timezone.utc), sport=2, vo2_max_raw=900000))
    write_file(fit_folder, 'notes.txt', b'not an activity')
    os.mkdir(os.path.join(fit_folder, 'subfolder'))

    aggregator = DailyAggregator()
    with pytest.warns(FITFileSkippedWarning):
        series = aggregator.scan_folder(fit_folder)

    assert series.dates() == [date(2019, 5, 1), date(2019, 5, 2)]
    assert series[date(2019, 5, 2)].vo2_max == pytest.approx(35.0)
    assert series[date(2019, 5, 2)].heart_rate == 60
    assert [os.path.basename(f) for f in aggregator.skipped_files] == ['notes.txt']


def test_empty_file_does_not_stop_scan(fit_folder):
    write_file(fit_folder, '0_empty.fit', b'')
    write_file(fit_folder, '1_run.fit', activity_file(time_created=datetime(2019, 5, 2, 7, tzinfo=timezone.utc), sport=1, vo2_max_raw=655360))

    with pytest.warns(FITFileSkippedWarning):
        series = DailyAggregator.daily_series(fit_folder)

    assert len(series) == 1


def test_empty_folder(fit_folder):
    assert len(DailyAggregator.daily_series(fit_folder)) == 0


def test_missing_folder(tmp_path):
    with pytest.raises(OSError):
        DailyAggregator.daily_series(str(tmp_path / 'missing'))


def test_out_of_range_values_do_not_stop_scan(fit_folder):
    write_file(fit_folder, 'a.fit', fit_file(message_records(0, 0, [(4, UINT64, 2 ** 62)]) + message_records(1, 12, [(0, ENUM, 1)])))
    created = fit_seconds(datetime(2019, 5, 3, 7, tzinfo=timezone.utc))
    write_file(fit_folder, 'b.fit', fit_file(message_records(0, 0, [(4, UINT32, created)]) + message_records(1, 12, [(0, ENUM, 1), (253, FLOAT32, float('inf'))])))
    write_file(fit_folder, 'c.fit', activity_file(time_created=datetime(2019, 5, 2, 7, tzinfo=timezone.utc), sport=1, vo2_max_raw=655360))

    aggregator = DailyAggregator()
    with pytest.warns(FITFileSkippedWarning):
        series = aggregator.scan_folder(fit_folder)

    assert series.dates() == [date(2019, 5, 2), date(2019, 5, 3)]
    assert [os.path.basename(f) for f in aggregator.skipped_files] == ['a.fit']
