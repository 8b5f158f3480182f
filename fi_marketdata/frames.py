"""
pandas views of resolved market data for analysis and CSV export.
Values stay Decimal inside the pipeline; frames carry floats.
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .core.types import TimeSeriesPoint, YieldCurveSnapshot
from .core.validation import sort_tenors, tenor_years


def curve_to_frame(snapshot: YieldCurveSnapshot) -> pd.DataFrame:
    """One row per tenor, ordered by maturity: tenor, years, yield."""
    tenors = sort_tenors(snapshot.yields)
    df = pd.DataFrame(
        {
            "tenor": tenors,
            "years": [tenor_years(t) for t in tenors],
            "yield": [float(snapshot.yields[t]) for t in tenors],
        },
        columns=["tenor", "years", "yield"],
    )
    df.attrs["source"] = snapshot.source
    df.attrs["date"] = snapshot.date.isoformat()
    df.attrs["region"] = snapshot.region
    return df


def curves_to_frame(snapshots: Iterable[YieldCurveSnapshot]) -> pd.DataFrame:
    """Wide frame: index = curve date, columns = tenors by maturity, plus a source column."""
    rows: List[dict] = []
    tenors: set = set()
    for snap in snapshots:
        row = {"date": pd.Timestamp(snap.date), "source": snap.source}
        for tenor, value in snap.yields.items():
            row[tenor] = float(value)
            tenors.add(tenor)
        rows.append(row)
    columns = ["date", "source"] + sort_tenors(tenors)
    if not rows:
        return pd.DataFrame(columns=columns).set_index("date")
    df = pd.DataFrame(rows, columns=columns)
    # Duplicate request dates collapse to one row
    df = df.drop_duplicates(subset="date", keep="last")
    return df.set_index("date").sort_index()


def series_to_frame(points: Iterable[TimeSeriesPoint]) -> pd.DataFrame:
    rows = [
        {
            "observed_date": pd.Timestamp(p.observed_date),
            "key": p.key,
            "value": float(p.value),
            "source": p.source,
        }
        for p in points
    ]
    df = pd.DataFrame(rows, columns=["observed_date", "key", "value", "source"])
    return df.set_index("observed_date").sort_index()
