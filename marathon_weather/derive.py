import pandas as pd

from marathon_weather.constants import AGE_BINS, AGE_LABELS


def finish_minutes(cr_seconds, pct_cr):
    """
    Finishing time in minutes from the course record and percent off it.

    finish = cr_seconds * (1 + pct_cr / 100) / 60, e.g. a 3:00:00 record
    (10800 s) and pct_cr of 10 gives 198.0 minutes. Works on scalars and
    Series alike; a missing input gives a missing result.
    """
    return cr_seconds * (1 + pct_cr / 100) / 60


def age_group(age: pd.Series) -> pd.Series:
    """Bucket ages into the fixed right-closed bins, as an ordered categorical."""
    return pd.cut(
        age,
        bins=list(AGE_BINS),
        labels=list(AGE_LABELS),
        right=True,
        ordered=True,
    )


def add_derived_fields(df: pd.DataFrame) -> pd.DataFrame:
    if "cr_seconds" not in df.columns:
        raise ValueError("cr_seconds is required, join course records before deriving finish times")
    df = df.copy()
    df["finish_minutes"] = finish_minutes(df["cr_seconds"], df["pct_cr"])
    df["age_group"] = age_group(df["age"])
    return df
