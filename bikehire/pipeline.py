"""
End-to-end preparation of the bike hire modeling datasets.

Each stage takes its inputs as arguments and returns a new object, so the
intermediate results (events, dock timeline, usage series) stay available
for inspection and plotting.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pandas as pd

from . import config
from .features import FeatureBuilder
from .loading import fetch_station_records, load_hires, load_lockdowns, load_station_records
from .splitting import split_by_proportion, split_holdout
from .stations import StationEventSet, extract_station_events
from .timeline import build_dock_timeline
from .usage import normalize_usage


@dataclass(frozen=True)
class PreparedData:
    events: StationEventSet
    timeline: pd.DataFrame
    usage: pd.DataFrame
    builder: FeatureBuilder
    train: pd.DataFrame
    test: pd.DataFrame
    holdout: pd.DataFrame


def prepare_datasets(hires: pd.DataFrame,
                     station_records: List[Dict[str, Any]],
                     lockdowns: Optional[pd.DataFrame] = None,
                     train_proportion: float = config.TRAIN_PROPORTION,
                     holdout_start=config.HOLDOUT_START,
                     max_fill_days: Optional[int] = config.DOCK_FILL_LIMIT_DAYS,
                     target: str = config.TARGET,
                     verbose: bool = config.VERBOSE) -> PreparedData:
    """
    Run the preparation pipeline on already loaded inputs.

    Parameters
    ----------
    hires : pandas.DataFrame
        Daily hire counts ('date', 'n').
    station_records : list[dict]
        Raw BikePoint station records.
    lockdowns : pandas.DataFrame, optional
        Output of `load_lockdowns`. Without it no lockdown features are built.
    train_proportion : float, default config.TRAIN_PROPORTION
        Share of the pre-holdout rows used for training.
    holdout_start : date-like or None, default config.HOLDOUT_START
        First holdout date. None means no holdout.
    max_fill_days : int or None, default config.DOCK_FILL_LIMIT_DAYS
        Forward-fill limit for dock counts past the timeline end.
    target : str, default config.TARGET
        Rows where this column is undefined are left out of the modeling
        partitions (they stay in `usage`).

    Returns
    -------
    PreparedData
        Events, dock timeline, usage series, the fitted FeatureBuilder and the
        feature-engineered train/test/holdout frames.
    """
    events = extract_station_events(station_records, verbose=verbose)
    timeline = build_dock_timeline(events.installs, events.removals)
    usage = normalize_usage(hires, timeline, max_fill_days=max_fill_days, verbose=verbose)

    modeling = usage.dropna(subset=[target]).reset_index(drop=True)
    if verbose and len(modeling) < len(usage):
        print(f"Leaving out {len(usage) - len(modeling)} days with undefined {target}")

    if holdout_start is None:
        before, holdout = modeling, modeling.iloc[0:0]
    else:
        before, holdout = split_holdout(modeling, holdout_start)
    train_raw, test_raw = split_by_proportion(before, train_proportion)

    builder = FeatureBuilder(lockdowns=lockdowns).fit(train_raw)
    train, test, holdout = (builder.transform(part) for part in (train_raw, test_raw, holdout))

    if verbose:
        print(f"Train: {len(train)} days ({train['date'].min().date()} to {train['date'].max().date()})")
        print(f"Test: {len(test)} days ({test['date'].min().date()} to {test['date'].max().date()})")
        print(f"Holdout: {len(holdout)} days")

    return PreparedData(events, timeline, usage, builder, train, test, holdout)


def run(use_cached_stations: bool = False, verbose: bool = config.VERBOSE) -> PreparedData:
    """
    Load all inputs from the configured locations and prepare the datasets.

    With `use_cached_stations` the station records are read from
    config.STATIONS_CACHE_PATH instead of the live API. A failed live fetch
    raises StationFetchError and leaves the cache untouched.
    """
    hires = load_hires()['daily']
    if use_cached_stations:
        records = load_station_records()
    else:
        records = fetch_station_records(cache_path=config.STATIONS_CACHE_PATH)
    lockdowns = load_lockdowns()

    return prepare_datasets(hires, records, lockdowns=lockdowns, verbose=verbose)
