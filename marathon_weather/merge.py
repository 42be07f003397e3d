import pandas as pd

from marathon_weather.constants import AirQualityFilter
from marathon_weather.derive import add_derived_fields

COURSE_RECORD_KEYS = ["race", "year", "sex"]
MARATHON_DATE_KEYS = ["race", "year"]
AIR_QUALITY_KEYS = ["race", "year", "date"]


def _report_match(title: str, result: pd.DataFrame, matched_col: str, keys: list[str]) -> None:
    print("\n" + "="*80)
    print(title)
    print("="*80)

    total = len(result)
    matched = result[matched_col].notna()
    matched_count = matched.sum()
    if total == 0:
        print("No records to join")
        return

    print(f"Records matched: {matched_count:,} ({matched_count/total*100:.1f}%)")
    print(f"Records without match: {(~matched).sum():,} ({(~matched).sum()/total*100:.1f}%)")

    if (~matched).sum() > 0:
        unmatched_keys = result.loc[~matched, keys].drop_duplicates()
        print(f"Unique unmatched keys: {len(unmatched_keys)}")
        for _, row in unmatched_keys.head(10).iterrows():
            print("  - " + ", ".join(str(row[k]) for k in keys))


def _left_join(left: pd.DataFrame, right: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    # many_to_one: a duplicated right key would multiply runner rows
    return left.merge(right, on=keys, how="left", validate="many_to_one")


def join_course_records(results: pd.DataFrame, records: pd.DataFrame) -> pd.DataFrame:
    """Attach cr_seconds by (race, year, sex)."""
    joined = _left_join(results, records[COURSE_RECORD_KEYS + ["cr_seconds"]], COURSE_RECORD_KEYS)
    _report_match("Joining with course records...", joined, "cr_seconds", COURSE_RECORD_KEYS)
    return joined


def join_marathon_dates(df: pd.DataFrame, dates: pd.DataFrame) -> pd.DataFrame:
    """Attach the race-day date by (race, year)."""
    joined = _left_join(df, dates[MARATHON_DATE_KEYS + ["date"]], MARATHON_DATE_KEYS)
    _report_match("Joining with marathon dates...", joined, "date", MARATHON_DATE_KEYS)
    return joined


def aggregate_air_quality(readings: pd.DataFrame, aq_filter: AirQualityFilter = AirQualityFilter()) -> pd.DataFrame:
    """
    Collapse raw readings to one average per (race, year, date).

    Only readings matching the filter's unit and sample duration are
    averaged, so readings taken under different methods never mix.

    Args:
        readings: Loaded and normalized air-quality readings
        aq_filter: Which unit / duration combination to keep

    Returns:
        pd.DataFrame with columns race, year, date, avg_ppm
    """
    selected = readings[
        (readings["units_of_measure"] == aq_filter.units_of_measure)
        & (readings["sample_duration"] == aq_filter.sample_duration)
    ]
    print(f"Air quality readings matching {aq_filter}: {len(selected):,} of {len(readings):,}")

    return (
        selected.groupby(AIR_QUALITY_KEYS, as_index=False)["arithmetic_mean"]
        .mean()
        .rename(columns={"arithmetic_mean": "avg_ppm"})
    )


def join_air_quality(df: pd.DataFrame, aq_avg: pd.DataFrame) -> pd.DataFrame:
    """Attach avg_ppm by (race, year, date), the date must already be resolved."""
    if "date" not in df.columns:
        raise ValueError("date is required, join marathon dates before air quality")
    joined = _left_join(df, aq_avg[AIR_QUALITY_KEYS + ["avg_ppm"]], AIR_QUALITY_KEYS)
    _report_match("Joining with air quality...", joined, "avg_ppm", AIR_QUALITY_KEYS)
    return joined


def enrich(results: pd.DataFrame, records: pd.DataFrame, dates: pd.DataFrame,
           aq_avg: pd.DataFrame) -> pd.DataFrame:
    """
    Run the three left joins in order and add the derived fields.

    Course records come first because finish_minutes needs cr_seconds, and
    air quality comes after the dates because it is keyed on the race date.
    Every input row survives; unmatched keys leave missing values behind.
    """
    original_count = len(results)

    enriched = join_course_records(results, records)
    enriched = join_marathon_dates(enriched, dates)
    enriched = join_air_quality(enriched, aq_avg)
    enriched = add_derived_fields(enriched)

    if len(enriched) != original_count:
        raise RuntimeError(f"Record count changed! Expected {original_count:,}, got {len(enriched):,}")
    print(f"\n✓ Record count preserved: {len(enriched):,}")
    return enriched
