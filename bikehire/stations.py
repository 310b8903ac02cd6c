"""
Station Event Extraction for the Bike Hire Usage Pipeline.

Turns raw docking-station records (as returned by the BikePoint API) into
install and removal events carrying the number of docks each event adds or
removes. One malformed record never blocks the rest of the batch: it is
skipped and reported in the returned `StationEventSet`.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from . import config
from .errors import MalformedStationRecord, MissingInstallDate


class EventType(Enum):
    INSTALLED = 'installed'
    REMOVED = 'removed'


@dataclass(frozen=True)
class StationEvent:
    station_id: str
    event_type: EventType
    date: date
    docks: int


@dataclass(frozen=True)
class StationEventSet:
    """Installs and removals sorted by date, plus what was skipped on the way."""
    installs: List[StationEvent]
    removals: List[StationEvent]
    missing_install: List[str] = field(default_factory=list)
    malformed: List[MalformedStationRecord] = field(default_factory=list)

    @property
    def n_skipped(self) -> int:
        return len(self.missing_install) + len(self.malformed)


def _properties(record: Dict[str, Any]) -> Dict[str, Any]:
    props = record.get('additionalProperties') or []
    return {p.get('key'): p.get('value') for p in props if isinstance(p, dict)}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


def epoch_ms_to_date(value) -> date:
    """
    Convert a millisecond epoch timestamp (string or number) to a UTC calendar date.

    The time of day is truncated, never rounded.
    """
    seconds = int(str(value).strip()) / 1000
    return datetime.fromtimestamp(seconds, tz=timezone.utc).date()


def parse_station_record(record: Dict[str, Any]) -> Tuple[StationEvent, Optional[StationEvent]]:
    """
    Parse one station record into its install event and optional removal event.

    Parameters
    ----------
    record : dict
        Station record with an 'id' and an 'additionalProperties' list of
        {'key', 'value'} pairs containing 'NbDocks', 'InstallDate' and
        'RemovalDate' (millisecond epoch strings; RemovalDate may be empty).

    Returns
    -------
    tuple[StationEvent, StationEvent | None]
        (install, removal). `removal` is None while the station is active.

    Raises
    ------
    MissingInstallDate
        If the record has no install timestamp.
    MalformedStationRecord
        If the id is missing, the dock count or a timestamp cannot be parsed,
        or the removal precedes the install.
    """
    station_id = record.get('id')
    if _is_blank(station_id):
        raise MalformedStationRecord(station_id, "missing id")
    station_id = str(station_id)

    props = _properties(record)

    if _is_blank(props.get('InstallDate')):
        raise MissingInstallDate(station_id)

    try:
        docks = int(str(props.get('NbDocks')).strip())
    except ValueError as exc:
        raise MalformedStationRecord(station_id, f"unparseable NbDocks {props.get('NbDocks')!r}") from exc
    if docks < 0:
        raise MalformedStationRecord(station_id, f"negative NbDocks {docks}")

    try:
        installed_on = epoch_ms_to_date(props['InstallDate'])
        removal_raw = props.get('RemovalDate')
        removed_on = None if _is_blank(removal_raw) else epoch_ms_to_date(removal_raw)
    except (ValueError, OverflowError, OSError) as exc:
        raise MalformedStationRecord(station_id, f"unparseable timestamp ({exc})") from exc

    install = StationEvent(station_id, EventType.INSTALLED, installed_on, docks)
    if removed_on is None:
        return install, None

    if removed_on < installed_on:
        raise MalformedStationRecord(
            station_id, f"removed on {removed_on} before install on {installed_on}"
        )
    return install, StationEvent(station_id, EventType.REMOVED, removed_on, docks)


def extract_station_events(records: Iterable[Dict[str, Any]],
                           verbose: bool = config.VERBOSE) -> StationEventSet:
    """
    Extract sorted install and removal events from raw station records.

    Records without an install date are dropped and counted; any other
    malformed record is skipped and kept in `malformed` with its reason.
    A record repeating an already accepted station id is malformed too; the
    first record for that id is kept.
    Events are sorted ascending by date, ties broken by station id.
    """
    installs, removals = [], []
    missing_install, malformed = [], []
    seen = set()

    for record in records:
        try:
            install, removal = parse_station_record(record)
        except MissingInstallDate as exc:
            missing_install.append(exc.station_id)
            continue
        except MalformedStationRecord as exc:
            malformed.append(exc)
            continue

        if install.station_id in seen:
            malformed.append(MalformedStationRecord(install.station_id, "duplicate id"))
            continue
        seen.add(install.station_id)

        installs.append(install)
        if removal is not None:
            removals.append(removal)

    def sort_key(event):
        return event.date, event.station_id

    events = StationEventSet(
        installs=sorted(installs, key=sort_key),
        removals=sorted(removals, key=sort_key),
        missing_install=missing_install,
        malformed=malformed,
    )

    if verbose:
        print(f"Extracted {len(events.installs)} installs and {len(events.removals)} removals")
        if missing_install:
            print(f"Dropped {len(missing_install)} stations without an install date")
        if malformed:
            print(f"Skipped {len(malformed)} malformed station records:")
            for exc in malformed:
                print(f"  {exc}")

    return events


def events_to_frame(events: Iterable[StationEvent]) -> pd.DataFrame:
    """Tabular view of events with columns station_id, event_type, date, docks."""
    rows = [{
        'station_id': e.station_id,
        'event_type': e.event_type.value,
        'date': pd.Timestamp(e.date),
        'docks': e.docks,
    } for e in events]
    return pd.DataFrame(rows, columns=['station_id', 'event_type', 'date', 'docks'])


def station_metadata_frame(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    Station identity and location, one row per record.

    Returns
    -------
    pandas.DataFrame
        Columns 'id', 'commonName', 'lat', 'lon' and 'docks' (NaN when
        NbDocks is missing or not numeric).
    """
    rows = []
    for record in records:
        try:
            docks = int(str(_properties(record).get('NbDocks')).strip())
        except ValueError:
            docks = np.nan
        rows.append({
            'id': record.get('id'),
            'commonName': record.get('commonName'),
            'lat': record.get('lat'),
            'lon': record.get('lon'),
            'docks': docks,
        })
    return pd.DataFrame(rows, columns=['id', 'commonName', 'lat', 'lon', 'docks'])
