from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable

import pandas as pd

from marathon_weather import cleaning, loader, normalize, stats
from marathon_weather.constants import (
    AIR_QUALITY_FILE,
    COURSE_RECORDS_FILE,
    DATA_DIR,
    MARATHON_DATES_FILE,
    RACE_RESULTS_FILE,
    WEATHER_FIELDS,
    AirQualityFilter,
)
from marathon_weather.merge import aggregate_air_quality, enrich

SORT_KEYS = ["race", "year", "sex", "age"]
ANOVA_FACTORS = ("sex", "age_group", "flag")


@dataclass(frozen=True)
class PipelineInputs:
    race_results: Path
    course_records: Path
    marathon_dates: Path
    air_quality: Path

    @classmethod
    def from_dir(cls, data_dir: Path = DATA_DIR) -> "PipelineInputs":
        data_dir = Path(data_dir)
        return cls(
            race_results=data_dir / RACE_RESULTS_FILE,
            course_records=data_dir / COURSE_RECORDS_FILE,
            marathon_dates=data_dir / MARATHON_DATES_FILE,
            air_quality=data_dir / AIR_QUALITY_FILE,
        )


@dataclass
class PipelineResult:
    enriched: pd.DataFrame
    cleaned: pd.DataFrame
    missing_report: pd.DataFrame


def run_pipeline(inputs: PipelineInputs, aq_filter: AirQualityFilter = AirQualityFilter()) -> PipelineResult:
    """
    Load, normalize, join, derive and filter the four inputs.

    Results are put in a fixed (race, year, sex, age) order with a stable
    sort, so unchanged inputs always give an identical cleaned table.
    """
    print("Loading data files...")
    results = normalize.normalize_race_results(loader.load_race_results(inputs.race_results))
    records = normalize.normalize_course_records(loader.load_course_records(inputs.course_records))
    dates = normalize.normalize_marathon_dates(loader.load_marathon_dates(inputs.marathon_dates))
    readings = normalize.normalize_air_quality(loader.load_air_quality(inputs.air_quality))
    print(f"Race results: {len(results):,} records")
    print(f"Course records: {len(records):,}, marathon dates: {len(dates):,}, "
          f"air quality readings: {len(readings):,}")

    results = results.sort_values(SORT_KEYS, kind="mergesort").reset_index(drop=True)
    aq_avg = aggregate_air_quality(readings, aq_filter)
    enriched = enrich(results, records, dates, aq_avg)

    missing_report = cleaning.missing_data_report(enriched, by="race", fields=WEATHER_FIELDS)
    cleaned = cleaning.drop_incomplete_weather(enriched, WEATHER_FIELDS).reset_index(drop=True)
    return PipelineResult(enriched=enriched, cleaned=cleaned, missing_report=missing_report)


def _summary_builders(cleaned: pd.DataFrame) -> dict[str, Callable[[], pd.DataFrame]]:
    correlation_vars = list(WEATHER_FIELDS)
    if "avg_ppm" in cleaned.columns:
        correlation_vars.append("avg_ppm")

    builders = {
        "summary_by_sex_age": partial(stats.grouped_summary, cleaned, ["sex", "age_group"]),
        "summary_by_race_sex": partial(stats.grouped_summary, cleaned, ["race", "sex"]),
        "flag_summary": partial(stats.flag_summary, cleaned),
        "fastest_age": partial(stats.fastest_age, cleaned),
        "weather_correlations": partial(stats.weather_correlations, cleaned, variables=correlation_vars),
    }
    for factor in ANOVA_FACTORS:
        builders[f"anova_{factor}"] = partial(stats.one_way_anova, cleaned, factor)
        builders[f"tukey_{factor}"] = partial(stats.tukey_hsd, cleaned, factor)
    builders["anova_factorial"] = partial(stats.factorial_anova, cleaned, ANOVA_FACTORS)
    return builders


def build_summary_tables(cleaned: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """
    Every derived table of the analysis, keyed by output name.

    Each table is built on its own. A table the data cannot support is
    reported as insufficient data and left out; the other tables are still
    built.

    Raises:
        InsufficientDataError: If the cleaned table is empty
    """
    if cleaned.empty:
        raise stats.InsufficientDataError(f"{stats.INSUFFICIENT}: no complete records to summarize")

    tables = {}
    for name, build in _summary_builders(cleaned).items():
        try:
            tables[name] = build()
        except stats.InsufficientDataError as exc:
            print(f"  - skipping {name}, {exc}")
    return tables
