"""
Chronological Splitting for the Bike Hire Usage Pipeline.

All splits keep the original row order: training rows always precede test
rows in time. Nothing is shuffled or sampled.
"""
from typing import List, Tuple

import numpy as np
import pandas as pd

from .errors import EmptyPartitionError, UnsortedInputError


def require_ascending_dates(df: pd.DataFrame, date_col: str = 'date') -> None:
    """Raise UnsortedInputError unless `df[date_col]` is strictly ascending."""
    if date_col not in df.columns:
        raise ValueError(f"Missing '{date_col}' column")
    dates = pd.to_datetime(df[date_col])
    if not (dates.is_monotonic_increasing and dates.is_unique):
        raise UnsortedInputError(f"'{date_col}' must be strictly ascending")


def split_by_proportion(df: pd.DataFrame, p: float,
                        date_col: str = 'date') -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a date-ordered frame into a training prefix and a test suffix.

    Parameters
    ----------
    df : pandas.DataFrame
        Strictly ascending by `date_col`.
    p : float
        Training proportion in (0, 1). The training set holds the first
        `round(p * len(df))` rows.
    date_col : str, default 'date'

    Returns
    -------
    tuple[pandas.DataFrame, pandas.DataFrame]
        (train, test), both copies in original order.

    Raises
    ------
    ValueError
        If `p` is not strictly between 0 and 1.
    UnsortedInputError
        If the dates are not strictly ascending.
    EmptyPartitionError
        If either partition would be empty.
    """
    if not 0 < p < 1:
        raise ValueError(f"Training proportion must be in (0, 1), got {p}")
    require_ascending_dates(df, date_col)

    n_train = int(round(p * len(df)))
    n_test = len(df) - n_train
    if n_train == 0 or n_test == 0:
        raise EmptyPartitionError(n_train, n_test)

    return df.iloc[:n_train].copy(), df.iloc[n_train:].copy()


def split_holdout(df: pd.DataFrame, holdout_start,
                  date_col: str = 'date') -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split off every row on or after `holdout_start` as a holdout set.

    Returns (before, holdout). Either part may be empty.
    """
    require_ascending_dates(df, date_col)
    mask = pd.to_datetime(df[date_col]) < pd.Timestamp(holdout_start)
    return df[mask].copy(), df[~mask].copy()


def get_cv_splits(df: pd.DataFrame, n_splits: int = 5, len_split: int = 90,
                  date_col: str = 'date') -> List[Tuple[np.ndarray, np.ndarray]]:
    """
    Build blocked, **time-ordered** cross-validation splits.

    For each split i (0..n_splits-1), the validation window is the last
    `len_split` rows shifted i blocks back in time; the training set is
    everything strictly before that window. Positional index arrays are
    returned so they can be fed directly into scikit-learn CV routines.

    Parameters
    ----------
    df : pandas.DataFrame
        Strictly ascending by `date_col`.
    n_splits : int, default 5
        Number of validation windows, taken from the end of the series.
    len_split : int, default 90
        Rows per validation window.

    Returns
    -------
    list[tuple[np.ndarray, np.ndarray]]
        (train_idx, val_idx) per split.

    Raises
    ------
    EmptyPartitionError
        If the series is too short to leave training rows for every split.
    """
    require_ascending_dates(df, date_col)
    n = len(df)

    cv_splits = []
    for i in range(n_splits):
        split_point = n - len_split * (i + 1)
        end_point = n - len_split * i
        if split_point <= 0:
            raise EmptyPartitionError(max(split_point, 0), len_split)
        cv_splits.append((np.arange(0, split_point), np.arange(split_point, end_point)))

    return cv_splits
