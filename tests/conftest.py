from __future__ import annotations

from datetime import date, datetime, timezone

import matplotlib
import pandas as pd
import pytest

matplotlib.use("Agg")


def epoch_ms(day: date, hour: int = 23, minute: int = 59) -> str:
    moment = datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)
    return str(int(moment.timestamp() * 1000))


def station_record(
    station_id: str,
    installed: date | None,
    removed: date | None = None,
    docks: object = 10,
) -> dict:
    props = [
        {"key": "NbDocks", "value": str(docks)},
        {"key": "InstallDate", "value": epoch_ms(installed) if installed else ""},
        {"key": "RemovalDate", "value": epoch_ms(removed) if removed else ""},
    ]
    return {
        "id": station_id,
        "commonName": f"Station {station_id}",
        "lat": 51.5,
        "lon": -0.12,
        "additionalProperties": props,
    }


@pytest.fixture
def make_record():
    return station_record


@pytest.fixture
def daily_frame():
    def build(start: str, periods: int, **columns) -> pd.DataFrame:
        df = pd.DataFrame({"date": pd.date_range(start, periods=periods, freq="D")})
        for name, values in columns.items():
            df[name] = values
        return df

    return build
