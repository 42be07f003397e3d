from typing import Mapping

import pandas as pd

from marathon_weather.constants import (
    FLAG_LEVELS,
    RACE_ABBREVIATIONS,
    RACE_CODES,
    SEX_ABBREVIATIONS,
    SEX_CODES,
)


class UnknownCodeError(ValueError):
    """A coded identifier has no entry in its lookup table."""


class DurationFormatError(ValueError):
    """A duration string is not a valid H:M:S value."""


def map_codes(series: pd.Series, table: Mapping, name: str) -> pd.Series:
    """
    Map coded identifiers to their canonical labels.

    Args:
        series: Raw codes
        table: Lookup of code -> label
        name: Column name, used in the error message

    Returns:
        pd.Series of labels, same index as series

    Raises:
        UnknownCodeError: If any code (including a missing one) is not in table
    """
    # integer codes often arrive as floats once a column has held a NaN
    def _lookup_key(val):
        if isinstance(val, float) and val.is_integer():
            return int(val)
        if isinstance(val, str):
            return val.strip()
        return val

    keys = series.map(_lookup_key)
    unknown = sorted({str(k) for k in keys if pd.isna(k) or k not in table})
    if unknown:
        raise UnknownCodeError(f"Unrecognized {name} codes: {unknown}, expected one of {list(table)}")
    return keys.map(dict(table))


def duration_to_seconds(time_str) -> float:
    """
    Convert a duration string from H:M:S format to total seconds.

    Raises:
        DurationFormatError: On anything other than three non-negative parts
            with minutes and seconds below 60
    """
    if time_str is None or (not isinstance(time_str, str) and pd.isna(time_str)):
        raise DurationFormatError("Missing duration")

    parts = str(time_str).strip().split(":")
    if len(parts) != 3:
        raise DurationFormatError(f"Expected H:M:S, got {time_str!r}")
    try:
        hours, minutes, seconds = int(parts[0]), int(parts[1]), float(parts[2])
    except ValueError as exc:
        raise DurationFormatError(f"Expected H:M:S, got {time_str!r}") from exc

    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise DurationFormatError(f"Out of range duration {time_str!r}")
    return hours * 3600 + minutes * 60 + seconds


def normalize_flags(series: pd.Series) -> pd.Series:
    """Ordered categorical of flag conditions, missing flags stay missing."""
    flags = series.astype("string").str.strip().str.capitalize().replace("", pd.NA)
    unknown = sorted(set(flags.dropna()) - set(FLAG_LEVELS))
    if unknown:
        raise UnknownCodeError(f"Unrecognized flag values: {unknown}, expected one of {list(FLAG_LEVELS)}")
    return pd.Categorical(flags, categories=FLAG_LEVELS, ordered=True)


def normalize_race_results(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["race"] = map_codes(df["race"], RACE_CODES, "race")
    df["sex"] = map_codes(df["sex"], SEX_CODES, "sex")
    df["flag"] = normalize_flags(df["flag"])
    return df


def normalize_course_records(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["race"] = map_codes(df["race"], RACE_ABBREVIATIONS, "course record race")
    df["sex"] = map_codes(df["sex"], SEX_ABBREVIATIONS, "course record sex")
    df["cr_seconds"] = df["cr_time"].map(duration_to_seconds).astype(float)
    return df


def normalize_marathon_dates(df: pd.DataFrame) -> pd.DataFrame:
    """Race names may be given as labels or as course-record abbreviations."""
    table = dict(RACE_ABBREVIATIONS)
    table.update({label: label for label in RACE_ABBREVIATIONS.values()})
    df = df.copy()
    df["race"] = map_codes(df["race"], table, "marathon date race")
    return df


def normalize_air_quality(df: pd.DataFrame) -> pd.DataFrame:
    table = dict(RACE_ABBREVIATIONS)
    table.update({label: label for label in RACE_ABBREVIATIONS.values()})
    df = df.copy()
    df["race"] = map_codes(df["race"], table, "air quality race")
    return df
