"""
Dock Timeline Functions for the Bike Hire Usage Pipeline.

Aggregates station install/removal events into a gap-free daily series of
active stations and active docks.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from .errors import UnsortedInputError
from .stations import StationEvent

TIMELINE_COLUMNS = ['date', 'stations', 'docks']


@dataclass(frozen=True)
class DailyDockCount:
    date: date
    stations: int
    docks: int


def _daily_change(events: Iterable[StationEvent], sign: int) -> pd.DataFrame:
    rows = [{'date': pd.Timestamp(e.date), 'stations': sign, 'docks': sign * e.docks} for e in events]
    return pd.DataFrame(rows, columns=TIMELINE_COLUMNS)


def empty_timeline() -> pd.DataFrame:
    return pd.DataFrame({
        'date': pd.Series(dtype='datetime64[ns]'),
        'stations': pd.Series(dtype='int64'),
        'docks': pd.Series(dtype='int64'),
    })


def forward_fill_timeline(timeline: pd.DataFrame, end=None) -> pd.DataFrame:
    """
    Complete a dock timeline so that every calendar date has a row.

    Dates without a row inherit the previous row's totals. Applying this to
    an already complete timeline returns an identical frame.

    Parameters
    ----------
    timeline : pandas.DataFrame
        Columns 'date', 'stations', 'docks', strictly ascending by date.
    end : date-like, optional
        Last date to cover. Defaults to the last date in `timeline`; dates
        after that carry the last totals forward.

    Returns
    -------
    pandas.DataFrame
        New frame with the same columns, one row per day.
    """
    if timeline.empty:
        return empty_timeline()

    dates = pd.to_datetime(timeline['date'])
    if not (dates.is_monotonic_increasing and dates.is_unique):
        raise UnsortedInputError("Dock timeline dates must be strictly ascending")

    last = dates.iloc[-1] if end is None else max(dates.iloc[-1], pd.Timestamp(end))
    full_range = pd.date_range(dates.iloc[0], last, freq='D', name='date')

    out = (timeline.assign(date=dates)
           .set_index('date')[['stations', 'docks']]
           .reindex(full_range)
           .ffill()
           .astype('int64')
           .reset_index())
    return out[TIMELINE_COLUMNS]


def build_dock_timeline(installs: Iterable[StationEvent],
                        removals: Iterable[StationEvent],
                        start=None, end=None) -> pd.DataFrame:
    """
    Build the cumulative daily count of active stations and docks.

    Installs add one station and their docks; removals subtract them. Events
    sharing a date are summed, so their order within the date does not
    matter. The totals on an event date already include that date's events.

    Parameters
    ----------
    installs, removals : Iterable[StationEvent]
        Event sequences, e.g. from `extract_station_events`.
    start : date-like, optional
        First date to cover. Defaults to the earliest event. Dates before
        the first event get zero totals.
    end : date-like, optional
        Last date to cover. Defaults to the latest event.

    Returns
    -------
    pandas.DataFrame
        Columns 'date' (datetime64), 'stations', 'docks' (int), one row per
        calendar date, no gaps.
    """
    frames = [f for f in (_daily_change(installs, 1), _daily_change(removals, -1)) if not f.empty]
    if not frames:
        return empty_timeline()
    changes = pd.concat(frames, ignore_index=True)

    totals = (changes.groupby('date')[['stations', 'docks']]
              .sum()
              .sort_index()
              .cumsum())

    if start is not None and pd.Timestamp(start) < totals.index[0]:
        totals.loc[pd.Timestamp(start)] = [0, 0]
        totals = totals.sort_index()

    timeline = forward_fill_timeline(totals.reset_index(), end=end)

    if start is not None:
        timeline = timeline[timeline['date'] >= pd.Timestamp(start)].reset_index(drop=True)
    if end is not None:
        timeline = timeline[timeline['date'] <= pd.Timestamp(end)].reset_index(drop=True)

    return timeline


def timeline_records(timeline: pd.DataFrame) -> List[DailyDockCount]:
    return [DailyDockCount(row.date.date(), int(row.stations), int(row.docks))
            for row in timeline.itertuples(index=False)]


def dock_count_on(timeline: pd.DataFrame, when) -> Optional[DailyDockCount]:
    """Totals on a given date, or None if the date is outside the timeline."""
    match = timeline[timeline['date'] == pd.Timestamp(when)]
    if match.empty:
        return None
    return timeline_records(match)[0]
