from typing import Sequence

import pandas as pd

from marathon_weather.constants import WEATHER_FIELDS

MISSING_GROUP = "(missing)"


def drop_incomplete_weather(df: pd.DataFrame, fields: Sequence[str] = WEATHER_FIELDS) -> pd.DataFrame:
    """
    Keep only rows where every weather field is present. No imputation.

    Args:
        df: Enriched records
        fields: Weather columns that must all be non-missing

    Returns:
        pd.DataFrame of the retained rows, original index kept
    """
    complete = df[list(fields)].notna().all(axis=1)
    print(f"Rows with complete weather: {complete.sum():,} of {len(df):,} "
          f"({(~complete).sum():,} dropped)")
    return df.loc[complete].copy()


def missing_data_report(df: pd.DataFrame, by: str = "race",
                        fields: Sequence[str] = WEATHER_FIELDS) -> pd.DataFrame:
    """
    Missing-value counts per group for each weather field.

    Rows whose group key is itself missing are counted under MISSING_GROUP,
    so the per-group totals always add up to the table-wide total.

    Returns:
        pd.DataFrame indexed by group with one column per field, plus
        'records' and 'total_missing'
    """
    fields = list(fields)
    keys = df[by].astype("object").where(df[by].notna(), MISSING_GROUP)
    missing = df[fields].isna()

    # by can be one of the fields, so the keys are not added as a column
    grouped = missing.groupby(keys.to_numpy(), sort=False)
    report = grouped[fields].sum().astype(int)
    report.insert(0, "records", grouped.size())
    # keys can mix labels with MISSING_GROUP, order on their text
    report = report.loc[sorted(report.index, key=str)]
    report.index.name = by
    report["total_missing"] = report[fields].sum(axis=1)
    return report


def profile_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Per column dtype, null count and null percentage."""
    rows = []
    for col in df.columns:
        null_count = int(df[col].isnull().sum())
        rows.append({
            "column": col,
            "dtype": str(df[col].dtype),
            "nulls": null_count,
            "null_pct": (null_count / len(df)) * 100 if len(df) else 0.0,
        })
    return pd.DataFrame(rows, columns=["column", "dtype", "nulls", "null_pct"])
