from __future__ import annotations

from datetime import date

import numpy as np
import pandas as pd
import pytest

from bikehire.pipeline import prepare_datasets


@pytest.fixture
def inputs(make_record):
    dates = pd.date_range("2019-01-01", "2020-06-30", freq="D")
    rng = np.random.default_rng(11)
    hires = pd.DataFrame({"date": dates, "n": rng.integers(10000, 40000, len(dates))})
    records = [
        make_record("A", date(2019, 1, 10), docks=20),
        make_record("B", date(2019, 3, 1), removed=date(2019, 9, 1), docks=15),
        make_record("C", date(2019, 6, 1), docks=30),
        make_record("broken", date(2019, 6, 1), docks="n/a"),
    ]
    lockdowns = pd.DataFrame({
        "date": pd.date_range("2020-03-23", "2020-05-10", freq="D"),
        "stay_at_home": 1.0,
    })
    return hires, records, lockdowns


def test_prepare_datasets(inputs) -> None:
    hires, records, lockdowns = inputs

    prepared = prepare_datasets(hires, records, lockdowns=lockdowns, train_proportion=0.8,
                                holdout_start="2020-03-01", verbose=False)

    assert len(prepared.events.malformed) == 1
    assert prepared.usage["hires_per_dock"].isna().sum() == 9
    assert prepared.train["date"].min() == pd.Timestamp("2019-01-10")

    n_modeling = len(prepared.train) + len(prepared.test) + len(prepared.holdout)
    assert n_modeling == len(hires) - 9
    assert prepared.train["date"].max() < prepared.test["date"].min()
    assert prepared.test["date"].max() < prepared.holdout["date"].min()
    assert prepared.holdout["date"].min() == pd.Timestamp("2020-03-01")

    assert list(prepared.train.columns) == list(prepared.test.columns) == list(prepared.holdout.columns)
    assert prepared.train["date_index"].mean() == pytest.approx(0.0, abs=1e-9)
    assert prepared.train["postcovid"].sum() == 0
    assert prepared.holdout["stay_at_home"].sum() == 49


def test_prepare_datasets_without_holdout(inputs) -> None:
    hires, records, _ = inputs

    prepared = prepare_datasets(hires, records, holdout_start=None, train_proportion=0.9, verbose=False)

    assert prepared.holdout.empty
    assert "postcovid" not in prepared.train.columns
    assert len(prepared.train) == round(0.9 * (len(hires) - 9))
