from __future__ import annotations

from datetime import date

import pytest

from bikehire.errors import MalformedStationRecord, MissingInstallDate
from bikehire.stations import (
    EventType,
    epoch_ms_to_date,
    events_to_frame,
    extract_station_events,
    parse_station_record,
    station_metadata_frame,
)


def test_epoch_ms_to_date_truncates_time_of_day() -> None:
    # 2010-07-30 23:59 UTC must stay on the 30th
    assert epoch_ms_to_date("1280620740000") == date(2010, 7, 30)


def test_parse_record_without_removal(make_record) -> None:
    install, removal = parse_station_record(make_record("BikePoints_1", date(2010, 7, 30), docks=19))

    assert removal is None
    assert install.station_id == "BikePoints_1"
    assert install.event_type is EventType.INSTALLED
    assert install.date == date(2010, 7, 30)
    assert install.docks == 19


def test_parse_record_with_removal(make_record) -> None:
    _, removal = parse_station_record(
        make_record("BikePoints_2", date(2011, 1, 1), removed=date(2015, 1, 1), docks=5)
    )

    assert removal.event_type is EventType.REMOVED
    assert removal.date == date(2015, 1, 1)
    assert removal.docks == 5


def test_missing_install_date_is_its_own_error(make_record) -> None:
    with pytest.raises(MissingInstallDate):
        parse_station_record(make_record("BikePoints_3", None))


@pytest.mark.parametrize("docks", ["abc", "", "-3", "None"])
def test_bad_dock_counts_are_malformed(make_record, docks) -> None:
    with pytest.raises(MalformedStationRecord):
        parse_station_record(make_record("BikePoints_4", date(2012, 1, 1), docks=docks))


def test_removal_before_install_is_malformed(make_record) -> None:
    record = make_record("BikePoints_5", date(2012, 1, 1), removed=date(2011, 1, 1))

    with pytest.raises(MalformedStationRecord, match="before install"):
        parse_station_record(record)


def test_unparseable_timestamp_is_malformed(make_record) -> None:
    record = make_record("BikePoints_6", date(2012, 1, 1))
    record["additionalProperties"][1]["value"] = "yesterday"

    with pytest.raises(MalformedStationRecord, match="timestamp"):
        parse_station_record(record)


def test_extract_skips_bad_records_and_keeps_the_rest(make_record) -> None:
    records = [
        make_record("B", date(2012, 3, 1), docks=10),
        make_record("bad", date(2012, 3, 1), docks="many"),
        make_record("A", date(2010, 7, 30), removed=date(2015, 1, 1), docks=5),
        make_record("never", None),
        {"commonName": "no id"},
    ]

    events = extract_station_events(records, verbose=False)

    assert [e.station_id for e in events.installs] == ["A", "B"]
    assert [e.station_id for e in events.removals] == ["A"]
    assert events.missing_install == ["never"]
    assert len(events.malformed) == 2
    assert events.n_skipped == 3
    assert events.malformed[0].station_id == "bad"


def test_extract_sorts_same_day_events_by_station_id(make_record) -> None:
    records = [make_record(sid, date(2013, 5, 5)) for sid in ["C", "A", "B"]]

    events = extract_station_events(records, verbose=False)

    assert [e.station_id for e in events.installs] == ["A", "B", "C"]


def test_extract_keeps_first_record_of_duplicate_station_id(make_record) -> None:
    records = [
        make_record("A", date(2011, 1, 1), docks=10),
        make_record("A", date(2012, 1, 1), removed=date(2013, 1, 1), docks=30),
    ]

    events = extract_station_events(records, verbose=False)

    assert len(events.installs) == 1
    assert events.installs[0].docks == 10
    assert events.removals == []
    assert len(events.malformed) == 1
    assert events.malformed[0].station_id == "A"
    assert events.malformed[0].reason == "duplicate id"


def test_extract_reports_skipped_records(make_record, capsys) -> None:
    extract_station_events([make_record("bad", date(2012, 3, 1), docks="x")], verbose=True)

    out = capsys.readouterr().out
    assert "Skipped 1 malformed station records" in out
    assert "'bad'" in out


def test_events_to_frame(make_record) -> None:
    events = extract_station_events([make_record("A", date(2010, 7, 30), docks=5)], verbose=False)

    df = events_to_frame(events.installs)

    assert list(df.columns) == ["station_id", "event_type", "date", "docks"]
    assert df.loc[0, "event_type"] == "installed"
    assert df.loc[0, "docks"] == 5


def test_station_metadata_frame(make_record) -> None:
    df = station_metadata_frame([make_record("A", date(2010, 7, 30), docks=5),
                                 make_record("B", date(2010, 7, 30), docks="?")])

    assert list(df["id"]) == ["A", "B"]
    assert df.loc[0, "docks"] == 5
    assert df["docks"].isna().iloc[1]
