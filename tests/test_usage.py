from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from bikehire.usage import normalize_usage


def hires_frame(dates, counts) -> pd.DataFrame:
    return pd.DataFrame({"date": pd.to_datetime(dates), "n": counts})


def timeline_frame(start, docks) -> pd.DataFrame:
    return pd.DataFrame({
        "date": pd.date_range(start, periods=len(docks), freq="D"),
        "stations": [1] * len(docks),
        "docks": docks,
    })


def test_missing_dock_count_is_undefined_not_zero() -> None:
    hires = hires_frame(["2020-03-01"], [1000])
    timeline = timeline_frame("2020-03-02", [10])

    out = normalize_usage(hires, timeline, verbose=False)

    assert np.isnan(out.loc[0, "docks"])
    assert np.isnan(out.loc[0, "hires_per_dock"])


def test_zero_docks_is_undefined_not_inf() -> None:
    hires = hires_frame(["2020-03-01", "2020-03-02"], [1000, 500])
    timeline = timeline_frame("2020-03-01", [0, 10])

    out = normalize_usage(hires, timeline, verbose=False)

    assert np.isnan(out.loc[0, "hires_per_dock"])
    assert not np.isinf(out["hires_per_dock"]).any()
    assert out.loc[1, "hires_per_dock"] == pytest.approx(50.0)


def test_hires_per_dock_matches_ratio_where_defined() -> None:
    rng = np.random.default_rng(3)
    hires = hires_frame(pd.date_range("2020-01-01", periods=40), rng.integers(0, 5000, 40))
    timeline = timeline_frame("2020-01-05", list(rng.integers(0, 30, 30)))

    out = normalize_usage(hires, timeline, max_fill_days=3, verbose=False)

    defined = out["docks"] > 0
    assert np.allclose(out.loc[defined, "hires_per_dock"], out.loc[defined, "hires"] / out.loc[defined, "docks"])
    undefined = ~defined
    assert out.loc[undefined, "hires_per_dock"].isna().all()


def test_dates_after_timeline_are_forward_filled() -> None:
    hires = hires_frame(pd.date_range("2020-01-01", periods=5), [10, 20, 30, 40, 50])
    timeline = timeline_frame("2020-01-01", [5, 10])

    out = normalize_usage(hires, timeline, max_fill_days=None, verbose=False)

    assert out["docks"].tolist() == [5, 10, 10, 10, 10]
    assert out["hires_per_dock"].tolist() == pytest.approx([2, 2, 3, 4, 5])


def test_forward_fill_limit_leaves_later_days_undefined() -> None:
    hires = hires_frame(pd.date_range("2020-01-01", periods=4), [10, 20, 30, 40])
    timeline = timeline_frame("2020-01-01", [5, 10])

    out = normalize_usage(hires, timeline, max_fill_days=1, verbose=False)

    assert out["docks"].iloc[2] == 10
    assert np.isnan(out["docks"].iloc[3])
    assert np.isnan(out["hires_per_dock"].iloc[3])


def test_output_is_sorted_and_input_untouched() -> None:
    hires = hires_frame(["2020-01-02", "2020-01-01"], [20, 10])
    timeline = timeline_frame("2020-01-01", [5, 5])

    out = normalize_usage(hires, timeline, verbose=False)

    assert list(out.columns) == ["date", "hires", "stations", "docks", "hires_per_dock"]
    assert out["hires"].tolist() == [10, 20]
    assert list(hires.columns) == ["date", "n"]


def test_duplicate_hire_dates_are_rejected() -> None:
    hires = hires_frame(["2020-01-01", "2020-01-01"], [1, 2])

    with pytest.raises(ValueError, match="Duplicate"):
        normalize_usage(hires, timeline_frame("2020-01-01", [5]), verbose=False)


def test_undefined_rows_are_reported(capsys) -> None:
    normalize_usage(hires_frame(["2020-03-01"], [1000]), timeline_frame("2020-03-02", [10]), verbose=True)

    assert "1 of 1 days have no usable dock count" in capsys.readouterr().out
