"""
Input Loading for the Bike Hire Usage Pipeline.

Reads the hire-count spreadsheet, the lockdown-restriction CSV and the
docking-station records (live from the BikePoint API or from a local cache).
"""
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import requests

from . import config
from .errors import StationFetchError

_INDICATOR_VALUES = {
    'true': 1, 'false': 0,
    'yes': 1, 'no': 0,
    'y': 1, 'n': 0,
    '1': 1, '0': 0,
}


def _canonical_dates(values: pd.Series) -> pd.Series:
    # yearly ranges hold bare years (e.g. 2010) rather than dates
    if pd.api.types.is_numeric_dtype(values):
        return pd.to_datetime(values.astype(int).astype(str), format='%Y')
    return pd.to_datetime(values).dt.normalize()


def load_hire_range(path: Path, usecols: str, sheet: str = config.HIRES_SHEET) -> pd.DataFrame:
    """
    Read one (date, count) range of the hires spreadsheet.

    Returns
    -------
    pandas.DataFrame
        Columns 'date' (datetime64) and 'n' (int), sorted by date, with the
        empty trailing rows of shorter ranges removed.
    """
    raw = pd.read_excel(path, sheet_name=sheet, usecols=usecols)
    if raw.shape[1] != 2:
        raise ValueError(f"Range {usecols} of {path} has {raw.shape[1]} columns, expected 2")

    df = raw.set_axis(['date', 'n'], axis=1).dropna(how='any')
    df['date'] = _canonical_dates(df['date'])
    df['n'] = df['n'].astype('int64')
    return df.sort_values('date').reset_index(drop=True)


def load_hires(path: Path = config.HIRES_PATH, sheet: str = config.HIRES_SHEET,
               ranges: Optional[Dict[str, str]] = None) -> Dict[str, pd.DataFrame]:
    """
    Read the daily, monthly and yearly hire counts.

    Parameters
    ----------
    path : Path, default config.HIRES_PATH
    sheet : str, default config.HIRES_SHEET
    ranges : dict[str, str], optional
        Mapping name -> Excel column range. Defaults to config.HIRES_RANGES.

    Returns
    -------
    dict[str, pandas.DataFrame]
        One canonical ('date', 'n') frame per range name.
    """
    ranges = config.HIRES_RANGES if ranges is None else ranges
    return {name: load_hire_range(path, usecols, sheet) for name, usecols in ranges.items()}


def _to_indicator(values: pd.Series) -> pd.Series:
    mapped = values.astype(str).str.strip().str.lower().map(_INDICATOR_VALUES)
    unknown = values.notna() & mapped.isna()
    if unknown.any():
        raise ValueError(f"Unrecognized indicator values in '{values.name}': {sorted(values[unknown].unique())[:5]}")
    return mapped.astype(float)


def load_lockdowns(path: Path = config.LOCKDOWN_PATH,
                   date_format: str = config.LOCKDOWN_DATE_FORMAT) -> pd.DataFrame:
    """
    Read the lockdown-restriction indicators.

    Parameters
    ----------
    path : Path, default config.LOCKDOWN_PATH
        CSV with a 'date' column in `date_format` and one boolean-like column
        per restriction type.
    date_format : str, default config.LOCKDOWN_DATE_FORMAT ('%d/%m/%Y')

    Returns
    -------
    pandas.DataFrame
        'date' (datetime64) plus one indicator column per restriction, with
        1/0 values and NaN where the file leaves a cell empty. Sorted by date.
    """
    df = pd.read_csv(path, dtype=str)
    if 'date' not in df.columns:
        raise ValueError(f"{path} has no 'date' column")

    df['date'] = pd.to_datetime(df['date'].str.strip(), format=date_format)
    for col in df.columns.drop('date'):
        df[col] = _to_indicator(df[col].replace('', np.nan))

    if df['date'].duplicated().any():
        raise ValueError(f"{path} lists {int(df['date'].duplicated().sum())} dates more than once")

    return df.sort_values('date').reset_index(drop=True)


def _validate_station_payload(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, list):
        raise StationFetchError(f"Expected a list of station records, got {type(payload).__name__}")
    if not all(isinstance(record, dict) for record in payload):
        raise StationFetchError("Station payload contains non-object entries")
    return payload


def fetch_station_records(url: str = config.STATION_API_URL,
                          timeout: float = config.STATION_API_TIMEOUT,
                          cache_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """
    Fetch all docking-station records from the BikePoint API.

    The request is all-or-nothing: the full payload is downloaded and
    validated before anything is returned or cached. When `cache_path` is
    given, the cache file is replaced only after a successful fetch.

    Parameters
    ----------
    url : str, default config.STATION_API_URL
    timeout : float, default config.STATION_API_TIMEOUT
        Seconds before the request is abandoned. There is no retry.
    cache_path : Path, optional
        Where to store the raw records as JSON.

    Returns
    -------
    list[dict]
        Raw station records.

    Raises
    ------
    StationFetchError
        On connection errors, timeouts, HTTP errors or an unusable payload.
    """
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.exceptions.RequestException, ValueError) as exc:
        raise StationFetchError(f"Failed to fetch station records from {url}: {exc}") from exc

    records = _validate_station_payload(payload)

    if cache_path is not None:
        cache_path = Path(cache_path)
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = cache_path.with_name(cache_path.name + '.tmp')
        with open(tmp_path, 'w') as f:
            json.dump(records, f)
        os.replace(tmp_path, cache_path)

    return records


def load_station_records(path: Path = config.STATIONS_CACHE_PATH) -> List[Dict[str, Any]]:
    """Read station records previously cached by `fetch_station_records`."""
    with open(path) as f:
        return _validate_station_payload(json.load(f))
