from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest

from bikehire.errors import UnsortedInputError
from bikehire.stations import EventType, StationEvent, extract_station_events
from bikehire.timeline import (
    DailyDockCount,
    build_dock_timeline,
    dock_count_on,
    forward_fill_timeline,
    timeline_records,
)


def install(sid: str, day: date, docks: int) -> StationEvent:
    return StationEvent(sid, EventType.INSTALLED, day, docks)


def remove(sid: str, day: date, docks: int) -> StationEvent:
    return StationEvent(sid, EventType.REMOVED, day, docks)


def test_removal_scenario() -> None:
    installs = [install("A", date(2010, 7, 30), 5), install("B", date(2012, 3, 1), 10)]
    removals = [remove("A", date(2015, 1, 1), 5)]

    timeline = build_dock_timeline(installs, removals, end=date(2015, 1, 2))

    assert dock_count_on(timeline, date(2015, 1, 2)) == DailyDockCount(date(2015, 1, 2), 1, 10)
    assert dock_count_on(timeline, date(2015, 1, 1)) == DailyDockCount(date(2015, 1, 1), 1, 10)
    assert dock_count_on(timeline, date(2014, 12, 31)) == DailyDockCount(date(2014, 12, 31), 2, 15)
    assert dock_count_on(timeline, date(2010, 7, 30)) == DailyDockCount(date(2010, 7, 30), 1, 5)


def test_timeline_has_no_gaps() -> None:
    installs = [install("A", date(2020, 1, 1), 5), install("B", date(2020, 1, 10), 3)]

    timeline = build_dock_timeline(installs, [])

    assert list(timeline.columns) == ["date", "stations", "docks"]
    assert len(timeline) == 10
    assert (timeline["date"].diff().dropna() == pd.Timedelta(days=1)).all()
    assert timeline.loc[timeline["date"] == "2020-01-05", "docks"].item() == 5
    assert timeline["docks"].iloc[-1] == 8


def test_same_day_install_and_removal_is_order_independent() -> None:
    day = date(2016, 6, 1)
    installs = [install("A", date(2016, 1, 1), 4), install("B", day, 7)]
    removals = [remove("A", day, 4)]

    forward = build_dock_timeline(installs, removals)
    backward = build_dock_timeline(list(reversed(installs)), list(reversed(removals)))

    pd.testing.assert_frame_equal(forward, backward)
    assert dock_count_on(forward, day) == DailyDockCount(day, 1, 7)


def test_totals_never_negative(make_record) -> None:
    rng = np.random.default_rng(7)
    records = []
    for i in range(200):
        installed = date(2010, 1, 1) + timedelta(days=int(rng.integers(0, 3000)))
        removed = None
        if rng.random() < 0.4:
            removed = installed + timedelta(days=int(rng.integers(0, 1000)))
        records.append(make_record(f"S{i}", installed, removed, docks=int(rng.integers(0, 40))))
    events = extract_station_events(records, verbose=False)

    timeline = build_dock_timeline(events.installs, events.removals)

    assert (timeline["stations"] >= 0).all()
    assert (timeline["docks"] >= 0).all()


def test_forward_fill_is_idempotent() -> None:
    sparse = pd.DataFrame({
        "date": pd.to_datetime(["2020-01-01", "2020-01-05", "2020-01-09"]),
        "stations": [1, 2, 1],
        "docks": [5, 15, 10],
    })

    once = forward_fill_timeline(sparse)
    twice = forward_fill_timeline(once)

    pd.testing.assert_frame_equal(once, twice)
    assert once["docks"].tolist() == [5, 5, 5, 5, 15, 15, 15, 15, 10]


def test_forward_fill_extends_to_end() -> None:
    sparse = pd.DataFrame({"date": pd.to_datetime(["2020-01-01"]), "stations": [1], "docks": [5]})

    filled = forward_fill_timeline(sparse, end="2020-01-03")

    assert filled["docks"].tolist() == [5, 5, 5]


def test_forward_fill_rejects_unsorted_dates() -> None:
    unsorted = pd.DataFrame({
        "date": pd.to_datetime(["2020-01-05", "2020-01-01"]),
        "stations": [1, 2],
        "docks": [5, 10],
    })

    with pytest.raises(UnsortedInputError):
        forward_fill_timeline(unsorted)


def test_start_before_first_event_gives_zero_totals() -> None:
    timeline = build_dock_timeline([install("A", date(2020, 1, 3), 5)], [], start=date(2020, 1, 1))

    assert timeline["docks"].tolist() == [0, 0, 5]
    assert timeline["stations"].tolist() == [0, 0, 1]


def test_end_before_last_event_truncates() -> None:
    installs = [install("A", date(2020, 1, 1), 5), install("B", date(2020, 1, 10), 3)]

    timeline = build_dock_timeline(installs, [], end=date(2020, 1, 4))

    assert timeline["date"].iloc[-1] == pd.Timestamp("2020-01-04")
    assert timeline["docks"].iloc[-1] == 5


def test_no_events_gives_empty_timeline() -> None:
    timeline = build_dock_timeline([], [])

    assert timeline.empty
    assert list(timeline.columns) == ["date", "stations", "docks"]


def test_timeline_records_and_lookup_outside_range() -> None:
    timeline = build_dock_timeline([install("A", date(2020, 1, 1), 5)], [], end=date(2020, 1, 2))

    assert timeline_records(timeline) == [
        DailyDockCount(date(2020, 1, 1), 1, 5),
        DailyDockCount(date(2020, 1, 2), 1, 5),
    ]
    assert dock_count_on(timeline, date(2019, 12, 31)) is None
