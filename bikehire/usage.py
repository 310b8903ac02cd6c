"""
Usage Normalization for the Bike Hire Usage Pipeline.

Joins the raw daily hire counts with the dock timeline and derives the
number of hires per active dock.
"""
from typing import Optional

import numpy as np
import pandas as pd

from . import config
from .errors import UnsortedInputError


def normalize_usage(hires: pd.DataFrame, timeline: pd.DataFrame,
                    max_fill_days: Optional[int] = config.DOCK_FILL_LIMIT_DAYS,
                    verbose: bool = config.VERBOSE) -> pd.DataFrame:
    """
    Add station/dock counts and hires per dock to a daily hire series.

    Parameters
    ----------
    hires : pandas.DataFrame
        Canonical hire counts with columns 'date' and 'n'.
    timeline : pandas.DataFrame
        Output of `build_dock_timeline` ('date', 'stations', 'docks').
    max_fill_days : int or None, default config.DOCK_FILL_LIMIT_DAYS
        How many days past the last timeline entry the last dock count is
        carried forward. None carries it indefinitely.
    verbose : bool, default config.VERBOSE
        Print how many rows end up without a usable dock count.

    Returns
    -------
    pandas.DataFrame
        Sorted by date, with columns 'date', 'hires', 'stations', 'docks',
        'hires_per_dock'.

    Notes
    -----
    - Dates before the first timeline entry have NaN docks; they are never
      treated as zero.
    - 'hires_per_dock' is NaN wherever docks is zero or missing.
    """
    if max_fill_days is not None and max_fill_days < 0:
        raise ValueError(f"max_fill_days must be non-negative or None, got {max_fill_days}")

    out = (hires[['date', 'n']]
           .rename(columns={'n': 'hires'})
           .assign(date=lambda d: pd.to_datetime(d['date']).dt.normalize())
           .sort_values('date')
           .reset_index(drop=True))

    if out['date'].duplicated().any():
        dupes = out.loc[out['date'].duplicated(), 'date'].dt.date.tolist()
        raise ValueError(f"Duplicate hire dates: {dupes[:5]}")

    dock_cols = timeline[['date', 'stations', 'docks']].assign(date=lambda d: pd.to_datetime(d['date']))
    if not (dock_cols['date'].is_monotonic_increasing and dock_cols['date'].is_unique):
        raise UnsortedInputError("Dock timeline dates must be strictly ascending")

    out = out.merge(dock_cols, on='date', how='left')
    out[['stations', 'docks']] = out[['stations', 'docks']].astype('float64')

    if not dock_cols.empty:
        last = dock_cols.iloc[-1]
        after = out['date'] > last['date']
        if max_fill_days is not None:
            after &= (out['date'] - last['date']).dt.days <= max_fill_days
        out.loc[after, 'stations'] = float(last['stations'])
        out.loc[after, 'docks'] = float(last['docks'])

    out['hires_per_dock'] = out['hires'] / out['docks'].where(out['docks'] > 0, np.nan)

    n_undefined = int(out['hires_per_dock'].isna().sum())
    if verbose and n_undefined:
        print(f"{n_undefined} of {len(out)} days have no usable dock count (hires_per_dock undefined)")

    return out
