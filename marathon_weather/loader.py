from pathlib import Path
from typing import Iterable, Mapping

import pandas as pd

from marathon_weather.constants import (
    AIR_QUALITY_RENAME,
    COURSE_RECORDS_RENAME,
    MARATHON_DATES_RENAME,
    RESULTS_RENAME,
    WEATHER_FIELDS,
)

RESULTS_COLUMNS = ["race", "year", "sex", "flag", "age", "pct_cr", *WEATHER_FIELDS]
COURSE_RECORDS_COLUMNS = ["race", "year", "sex", "cr_time"]
MARATHON_DATES_COLUMNS = ["race", "year", "date"]
AIR_QUALITY_COLUMNS = ["race", "date", "units_of_measure", "sample_duration", "arithmetic_mean"]


class SchemaError(ValueError):
    """An input file is missing columns the pipeline reads by name."""


def _clean_columns(df: pd.DataFrame, rename: Mapping[str, str]) -> pd.DataFrame:
    df = df.rename(columns=dict(rename))
    df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")
    # second pass picks up headers that only match once lowercased
    return df.rename(columns=dict(rename))


def verify_columns(df: pd.DataFrame, required: Iterable[str], source) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        extra = [c for c in df.columns if c not in required]
        raise SchemaError(f"Schema mismatch in {source}: missing={missing}, extra={extra}")


def _read(path, rename: Mapping[str, str], required: list[str]) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if path.suffix.lower() != ".csv":
        raise ValueError(f"{path} is not a CSV file")

    df = _clean_columns(pd.read_csv(path), rename)
    verify_columns(df, required, path)
    return df[required].copy()


def load_race_results(path) -> pd.DataFrame:
    """
    Load the per-runner race results.

    Race and sex stay as their integer codes here; mapping them to labels is
    the normalizer's job so that unknown codes are caught in one place.

    Args:
        path: CSV with one row per runner per race-year

    Returns:
        pd.DataFrame with the RESULTS_COLUMNS, numeric columns coerced
    """
    df = _read(path, RESULTS_RENAME, RESULTS_COLUMNS)
    numeric_columns = ["year", "age", "pct_cr", *WEATHER_FIELDS]
    for col in numeric_columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def load_course_records(path) -> pd.DataFrame:
    """Load course records, one best time (H:M:S string) per race/year/sex."""
    df = _read(path, COURSE_RECORDS_RENAME, COURSE_RECORDS_COLUMNS)
    df["year"] = pd.to_numeric(df["year"], errors="coerce")
    df["cr_time"] = df["cr_time"].astype("string")
    return df


def load_marathon_dates(path) -> pd.DataFrame:
    df = _read(path, MARATHON_DATES_RENAME, MARATHON_DATES_COLUMNS)
    df["year"] = pd.to_numeric(df["year"], errors="coerce")
    df["date"] = pd.to_datetime(df["date"])
    return df


def load_air_quality(path) -> pd.DataFrame:
    """
    Load raw air-quality readings.

    Several readings can exist per race and date (one per monitoring site and
    method). Year is taken from the reading date.
    """
    df = _read(path, AIR_QUALITY_RENAME, AIR_QUALITY_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    df["year"] = df["date"].dt.year
    df["arithmetic_mean"] = pd.to_numeric(df["arithmetic_mean"], errors="coerce")
    return df
