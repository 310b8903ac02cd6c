"""
Feature Engineering for the Bike Hire Usage Pipeline.

This module derives calendar, holiday, exchange-closure, lockdown and date
index features from a daily date column. `FeatureBuilder` is fit on the
training partition only; the statistics it learns there (date index scaling,
categories of extra categorical columns) are applied unchanged to every other
partition, so no information flows from the future into the past.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple

import holidays
import numpy as np
import pandas as pd
from pandas.tseries.holiday import EasterMonday, GoodFriday, Holiday
from pandas.tseries.offsets import Easter
from sklearn.preprocessing import StandardScaler

from . import config
from .errors import FeatureBuilderStateError, NotFittedError
from .splitting import require_ascending_dates


HOLIDAY_CALENDARS: Dict[str, Dict[str, Holiday]] = {
    'World': {
        'NewYearsDay': Holiday('NewYearsDay', month=1, day=1),
        'GoodFriday': GoodFriday,
        'EasterSunday': Holiday('EasterSunday', month=1, day=1, offset=[Easter()]),
        'EasterMonday': EasterMonday,
        'ChristmasEve': Holiday('ChristmasEve', month=12, day=24),
        'ChristmasDay': Holiday('ChristmasDay', month=12, day=25),
        'BoxingDay': Holiday('BoxingDay', month=12, day=26),
        'NewYearsEve': Holiday('NewYearsEve', month=12, day=31),
    },
}

# Calendars read from the `holidays` country data: (country, subdivision, {name: holiday label}).
# These carry the published dates, so moved and one-off bank holidays are included.
# Both the actual date and the observed substitute day are flagged.
# A label of None matches every holiday that has none of the other labels.
COUNTRY_CALENDARS: Dict[str, Tuple[str, Optional[str], Dict[str, Optional[str]]]] = {
    'GB': ('GB', 'ENG', {
        'GBNewYearsDay': "New Year's Day",
        'GBGoodFriday': "Good Friday",
        'GBEasterMonday': "Easter Monday",
        'GBEarlyMayBankHoliday': "May Day",
        'GBSpringBankHoliday': "Spring Bank Holiday",
        'GBSummerBankHoliday': "Late Summer Bank Holiday",
        'GBChristmasDay': "Christmas Day",
        'GBBoxingDay': "Boxing Day",
        'GBSpecialBankHoliday': None,
    }),
}

_OBSERVED_SUFFIX = re.compile(r'\s*\(observed\)$', re.IGNORECASE)

# Fixed category domains so every partition gets identical one-hot columns
CALENDAR_CATEGORIES = {
    'month': list(range(1, 13)),
    'weekday': list(range(7)),
}

DATE_INDEX_EPOCH = pd.Timestamp('1970-01-01')


def create_calendar_features(df: pd.DataFrame, date_col: str = 'date') -> pd.DataFrame:
    """
    Add calendar fields derived from the date column.

    Parameters
    ----------
    df : pandas.DataFrame
        Must contain `date_col` (datetime-like, day resolution).
    date_col : str, default 'date'

    Returns
    -------
    pandas.DataFrame
        Copy of `df` with added integer columns:
        - 'year'
        - 'month' (1-12)
        - 'week' (ISO week number)
        - 'weekday' (Monday=0)
        - 'is_weekend' (0/1)
    """
    df = df.copy()
    dates = pd.to_datetime(df[date_col]).dt.normalize()
    df['year'], df['month'] = dates.dt.year, dates.dt.month
    df['week'] = dates.dt.isocalendar().week.astype('int64')
    df['weekday'] = dates.dt.dayofweek
    df['is_weekend'] = df['weekday'].isin([5, 6]).astype(int)
    return df


def available_holidays(calendar: str) -> List[str]:
    """Holiday names that can be requested for `calendar`."""
    if calendar in HOLIDAY_CALENDARS:
        return list(HOLIDAY_CALENDARS[calendar])
    if calendar in COUNTRY_CALENDARS:
        return list(COUNTRY_CALENDARS[calendar][2])
    raise ValueError(f"Unknown holiday calendar '{calendar}'. "
                     f"Available: {sorted([*HOLIDAY_CALENDARS, *COUNTRY_CALENDARS])}")


def _country_holiday_dates(calendar: str, name: str, start: pd.Timestamp,
                           end: pd.Timestamp) -> pd.DatetimeIndex:
    country, subdiv, labels = COUNTRY_CALENDARS[calendar]
    label = labels[name]
    regular = {value for value in labels.values() if value is not None}
    calendar_days = holidays.country_holidays(country, subdiv=subdiv,
                                              years=range(start.year, end.year + 1))

    days = []
    for day, day_label in calendar_days.items():
        # one date can carry several holidays, joined by '; '
        day_labels = {_OBSERVED_SUFFIX.sub('', part) for part in day_label.split('; ')}
        if (label in day_labels) if label is not None else not (day_labels & regular):
            days.append(day)

    dates = pd.DatetimeIndex(pd.to_datetime(sorted(days)))
    return dates[(dates >= start) & (dates <= end)]


def holiday_dates(calendar: str, name: str, start, end) -> pd.DatetimeIndex:
    """Dates of one named holiday of `calendar` between `start` and `end` (inclusive)."""
    start, end = pd.Timestamp(start), pd.Timestamp(end)
    if calendar in COUNTRY_CALENDARS:
        return _country_holiday_dates(calendar, name, start, end)
    return HOLIDAY_CALENDARS[calendar][name].dates(start, end)


def add_holiday_features(df: pd.DataFrame, holiday_names: Dict[str, Sequence[str]],
                         date_col: str = 'date') -> pd.DataFrame:
    """
    Add one 0/1 indicator per configured holiday.

    Parameters
    ----------
    df : pandas.DataFrame
        Must contain `date_col`.
    holiday_names : dict[str, Sequence[str]]
        Mapping calendar name -> holiday names (see `available_holidays`).
    date_col : str, default 'date'

    Returns
    -------
    pandas.DataFrame
        Copy of `df` with integer columns 'holiday_<calendar>_<name>'.
    """
    df = df.copy()
    dates = pd.to_datetime(df[date_col]).dt.normalize()
    if dates.empty:
        start = end = DATE_INDEX_EPOCH
    else:
        # pad the range so substitute days moved past the edges are still found
        start, end = dates.min() - pd.Timedelta(days=7), dates.max() + pd.Timedelta(days=7)

    for calendar, names in holiday_names.items():
        for name in names:
            df[f'holiday_{calendar}_{name}'] = dates.isin(holiday_dates(calendar, name, start, end)).astype(int)
    return df


def add_exchange_closure(df: pd.DataFrame, exchange: str, date_col: str = 'date') -> pd.DataFrame:
    """
    Add 'exchange_closed_<exchange>': 1 on weekends and exchange holidays.

    Uses the financial calendars of the `holidays` package (e.g. 'IFEU', ICE Futures Europe in London).
    """
    df = df.copy()
    dates = pd.to_datetime(df[date_col]).dt.normalize()
    years = range(dates.dt.year.min(), dates.dt.year.max() + 1) if not dates.empty else []
    closed = holidays.financial_holidays(exchange, years=years)

    is_holiday = dates.isin(pd.to_datetime(list(closed.keys())))
    df[f'exchange_closed_{exchange}'] = (is_holiday | (dates.dt.dayofweek >= 5)).astype(int)
    return df


def add_lockdown_features(df: pd.DataFrame, lockdowns: pd.DataFrame,
                          fill_value: Optional[int] = config.LOCKDOWN_MISSING_FILL,
                          date_col: str = 'date') -> pd.DataFrame:
    """
    Merge lockdown-restriction indicators onto the daily frame.

    Parameters
    ----------
    df : pandas.DataFrame
        Must contain `date_col`.
    lockdowns : pandas.DataFrame
        Output of `load_lockdowns`: a 'date' column and one 0/1 column per
        restriction type.
    fill_value : int or None, default config.LOCKDOWN_MISSING_FILL
        Value for restriction columns on dates absent from `lockdowns`.
        None leaves them NaN.

    Returns
    -------
    pandas.DataFrame
        `df` with every restriction column plus 'postcovid' (1 for dates
        present in `lockdowns`, 0 otherwise). Row order is preserved.
    """
    restriction_cols = [c for c in lockdowns.columns if c not in ('date', 'postcovid')]
    indicators = lockdowns[['date'] + restriction_cols].assign(
        date=lambda d: pd.to_datetime(d['date']))

    out = df.assign(**{date_col: pd.to_datetime(df[date_col])}).merge(
        indicators.rename(columns={'date': date_col}),
        on=date_col, how='left', indicator=True)
    out.index = df.index

    out['postcovid'] = (out['_merge'] == 'both').astype(int)
    out = out.drop(columns=['_merge'])
    if fill_value is not None:
        out[restriction_cols] = out[restriction_cols].fillna(fill_value).astype(int)
    return out


def date_index(df: pd.DataFrame, date_col: str = 'date') -> np.ndarray:
    """Days since 1970-01-01 as a float column vector."""
    days = (pd.to_datetime(df[date_col]) - DATE_INDEX_EPOCH).dt.days
    return days.to_numpy(dtype=float).reshape(-1, 1)


def one_hot(df: pd.DataFrame, col: str, categories: Sequence) -> pd.DataFrame:
    """
    One-hot encode `col` against a fixed category list.

    Every category gets a column '<col>_<category>' in the given order, even
    if it does not occur in `df`. Values outside `categories` are all zeros.
    """
    values = pd.Series(pd.Categorical(df[col], categories=list(categories)), index=df.index)
    return pd.get_dummies(values, prefix=col).astype(int)


class FeatureBuilder:
    """
    Two-phase feature builder: `fit` on the training partition, then
    `transform` any partition with the statistics learned there.

    Parameters
    ----------
    holiday_names : dict[str, Sequence[str]], default config.HOLIDAYS
        Holiday indicators to build, per calendar (see `available_holidays`).
    exchange : str or None, default config.EXCHANGE
        Exchange for the closure indicator. None skips it.
    lockdowns : pandas.DataFrame, optional
        Lockdown indicators (see `add_lockdown_features`).
    lockdown_fill : int or None, default config.LOCKDOWN_MISSING_FILL
    categorical_cols : Sequence[str], default ()
        Extra categorical columns to one-hot encode; their categories are
        learned in `fit` and sorted.
    date_col : str, default 'date'

    Notes
    -----
    - `transform` before `fit` raises NotFittedError.
    - `fit` after the first `transform` raises FeatureBuilderStateError.
    - Not thread-safe.
    """

    def __init__(self, holiday_names: Optional[Dict[str, Sequence[str]]] = None,
                 exchange: Optional[str] = config.EXCHANGE,
                 lockdowns: Optional[pd.DataFrame] = None,
                 lockdown_fill: Optional[int] = config.LOCKDOWN_MISSING_FILL,
                 categorical_cols: Sequence[str] = (),
                 date_col: str = 'date'):
        self.holiday_names = dict(config.HOLIDAYS if holiday_names is None else holiday_names)
        for calendar, names in self.holiday_names.items():
            unknown = set(names) - set(available_holidays(calendar))
            if unknown:
                raise ValueError(f"Unknown holidays for calendar '{calendar}': {sorted(unknown)}")

        if exchange is not None:
            try:
                holidays.financial_holidays(exchange)
            except NotImplementedError as exc:
                raise ValueError(f"Unknown exchange '{exchange}'") from exc

        self.exchange = exchange
        self.lockdowns = lockdowns
        self.lockdown_fill = lockdown_fill
        self.categorical_cols = list(categorical_cols)
        self.date_col = date_col

        self._scaler = None
        self._categories = None
        self._transformed = False

    @property
    def is_fitted(self) -> bool:
        return self._scaler is not None

    @property
    def categories(self) -> Dict[str, List]:
        if not self.is_fitted:
            raise NotFittedError("FeatureBuilder has not been fitted yet")
        return {col: list(cats) for col, cats in self._categories.items()}

    def fit(self, train: pd.DataFrame) -> 'FeatureBuilder':
        """
        Learn date index scaling and categorical levels from `train` only.

        Raises
        ------
        FeatureBuilderStateError
            If `transform` has already been called on this builder.
        UnsortedInputError
            If `train` is not strictly ascending by date.
        """
        if self._transformed:
            raise FeatureBuilderStateError("Cannot refit a FeatureBuilder after transform has been called")
        require_ascending_dates(train, self.date_col)
        if train.empty:
            raise ValueError("Cannot fit FeatureBuilder on an empty frame")

        categories = dict(CALENDAR_CATEGORIES)
        for col in self.categorical_cols:
            categories[col] = sorted(train[col].dropna().unique())

        self._categories = categories
        self._scaler = StandardScaler().fit(date_index(train, self.date_col))
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Build all features for `df` using the statistics learned in `fit`.

        Returns
        -------
        pandas.DataFrame
            Copy of `df` with calendar fields, one-hot columns for every
            category column, holiday and exchange indicators, lockdown
            indicators (if configured) and the standardized 'date_index'.
        """
        if not self.is_fitted:
            raise NotFittedError("FeatureBuilder.transform called before fit")
        require_ascending_dates(df, self.date_col)
        self._transformed = True

        out = create_calendar_features(df, self.date_col)
        out = add_holiday_features(out, self.holiday_names, self.date_col)
        if self.exchange is not None:
            out = add_exchange_closure(out, self.exchange, self.date_col)
        if self.lockdowns is not None:
            out = add_lockdown_features(out, self.lockdowns, self.lockdown_fill, self.date_col)

        dummies = [one_hot(out, col, cats) for col, cats in self._categories.items()]
        out = pd.concat([out] + dummies, axis=1)

        if out.empty:
            out['date_index'] = pd.Series(dtype=float)
        else:
            out['date_index'] = self._scaler.transform(date_index(out, self.date_col))[:, 0]
        return out

    def fit_transform(self, train: pd.DataFrame) -> pd.DataFrame:
        return self.fit(train).transform(train)


def get_feature_columns(df: pd.DataFrame, exclude_cols: Optional[List[str]] = None,
                        verbose: bool = config.VERBOSE) -> list:
    """
    Select numeric feature columns for modeling.

    Excludes identifiers, targets and raw categoricals that have been
    replaced by one-hot columns.

    Parameters
    ----------
    df : pandas.DataFrame
    exclude_cols : list of str, optional
        Defaults to ['date', 'n', 'hires', 'stations', 'docks',
        'hires_per_dock', 'month', 'weekday'].

    Returns
    -------
    list of str
    """
    if exclude_cols is None:
        exclude_cols = ['date', 'n', 'hires', 'stations', 'docks', 'hires_per_dock', 'month', 'weekday']

    feature_cols = [col for col in df.select_dtypes(include=['number', 'bool']).columns
                    if col not in exclude_cols]

    if verbose:
        removed_cols = set(df.columns) - set(feature_cols)
        print(f'Removed columns: {sorted(removed_cols)}')

    return feature_cols


def align_dataframe_columns(train_df: pd.DataFrame, test_df: pd.DataFrame,
                            exclude_cols: Optional[list] = None,
                            verbose: bool = config.VERBOSE) -> pd.DataFrame:
    """
    Align test dataframe columns to match the training dataframe.

    Adds missing columns (filled with 0) and removes extra columns so that
    both frames carry the same feature columns, in training column order.

    Parameters
    ----------
    train_df : pandas.DataFrame
        Training dataframe with the reference set of columns.
    test_df : pandas.DataFrame
        Dataframe to align. Not modified.
    exclude_cols : list, optional
        Columns left untouched (targets, dates). Defaults to
        ['date', 'n', 'hires', 'hires_per_dock'].

    Returns
    -------
    pandas.DataFrame
        Aligned copy of `test_df`.

    Notes
    -----
    `FeatureBuilder` already yields identical one-hot columns across
    partitions; this is for frames built by other means.
    """
    if exclude_cols is None:
        exclude_cols = ['date', 'n', 'hires', 'hires_per_dock']

    train_cols = set(train_df.columns) - set(exclude_cols)
    test_cols = set(test_df.columns) - set(exclude_cols)

    missing_cols = train_cols - test_cols
    extra_cols = test_cols - train_cols

    test_df = test_df.copy()
    if missing_cols:
        if verbose:
            print(f"Adding {len(missing_cols)} missing columns to test set: {sorted(missing_cols)}")
        for col in sorted(missing_cols):
            test_df[col] = 0

    if extra_cols:
        if verbose:
            print(f"Removing {len(extra_cols)} extra columns from test set: {sorted(extra_cols)}")
        test_df = test_df.drop(columns=list(extra_cols))

    ordered = [c for c in train_df.columns if c in test_df.columns]
    ordered += [c for c in test_df.columns if c not in ordered]
    return test_df[ordered]
