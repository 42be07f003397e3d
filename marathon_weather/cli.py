import os
import time
from pathlib import Path

import click
import pandas as pd
import psutil

from marathon_weather import cleaning, stats
from marathon_weather.constants import DATA_DIR, WEATHER_FIELDS, AirQualityFilter
from marathon_weather.pipeline import PipelineInputs, build_summary_tables, run_pipeline

# the package errors, pandas MergeError and date parse errors are all ValueErrors
PIPELINE_ERRORS = (FileNotFoundError, ValueError)

_DEFAULT_FILTER = AirQualityFilter()


def _memory_mb() -> float:
    return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024


def _echo_performance(start_time: float, start_memory: float) -> None:
    end_time = time.time()
    end_memory = _memory_mb()
    elapsed_time = end_time - start_time

    click.echo("\n")
    click.echo("="*50)
    click.echo("PERFORMANCE METRICS")
    click.echo("="*50)
    click.echo(f"End time: {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(end_time))}")
    click.echo(f"Total runtime: {elapsed_time:.2f} seconds ({elapsed_time/60:.2f} minutes)")
    click.echo(f"Initial memory: {start_memory:.2f} MB")
    click.echo(f"Final memory: {end_memory:.2f} MB")
    click.echo(f"Memory delta: {end_memory - start_memory:+.2f} MB")
    click.echo("="*50)


def _write_table(frame: pd.DataFrame, path: Path, force: bool, index: bool = False) -> bool:
    if path.exists() and not force:
        click.echo(f"  - skipping {path.name}, already written")
        return False
    frame.to_csv(path, index=index)
    click.echo(f"  ✓ {path.name}")
    return True


@click.group()
def cli():
    """Marathon performance vs. weather and air quality analysis."""
    pass


@cli.command()
@click.option('--data', 'data_dir', default=DATA_DIR,
              type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
              help='Directory holding the four input CSV files')
@click.option('--out', required=True, type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
              help='Path to output directory')
@click.option('--aq-units', default=_DEFAULT_FILTER.units_of_measure, show_default=True,
              help='Units of measure of the air-quality readings to average')
@click.option('--aq-duration', default=_DEFAULT_FILTER.sample_duration, show_default=True,
              help='Sample duration of the air-quality readings to average')
@click.option('--force', is_flag=True, help='Overwrite tables that already exist in the output directory')
def run(data_dir: Path, out: Path, aq_units: str, aq_duration: str, force: bool):
    """Build the cleaned records and every summary table."""
    start_time = time.time()
    start_memory = _memory_mb()
    aq_filter = AirQualityFilter(units_of_measure=aq_units, sample_duration=aq_duration)

    click.echo("="*50)
    click.echo(f"Input directory: {data_dir}")
    click.echo(f"Output directory: {out}")
    click.echo(f"Air quality filter: {aq_filter}")
    click.echo(f"Start time: {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(start_time))}")
    click.echo(f"Initial memory: {start_memory:.2f} MB")
    click.echo("="*50)

    try:
        result = run_pipeline(PipelineInputs.from_dir(data_dir), aq_filter)
    except PIPELINE_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc

    out.mkdir(parents=True, exist_ok=True)
    click.echo(f"\nWriting tables to {out}:")
    _write_table(result.enriched, out / "enriched.csv", force)
    _write_table(result.cleaned, out / "cleaned.csv", force)
    _write_table(result.missing_report, out / "missing_report.csv", force, index=True)

    click.echo("\nBuilding summary tables:")
    try:
        tables = build_summary_tables(result.cleaned)
    except stats.InsufficientDataError as exc:
        click.echo(f"  - skipping summary tables, {exc}")
        tables = {}
    for name, table in tables.items():
        # ANOVA tables carry the term names in their index
        _write_table(table, out / f"{name}.csv", force, index=name.startswith("anova_"))

    _echo_performance(start_time, start_memory)


@cli.command()
@click.option('--data', 'data_dir', default=DATA_DIR,
              type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
              help='Directory holding the four input CSV files')
@click.option('--by', default='race', show_default=True, help='Column to group the missing-data report by')
def profile(data_dir: Path, by: str):
    """Profile the enriched records: column nulls and missing weather by group."""
    try:
        result = run_pipeline(PipelineInputs.from_dir(data_dir))
    except PIPELINE_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc
    if by not in result.enriched.columns:
        raise click.BadParameter(f"unknown column '{by}'", param_hint="--by")

    click.echo("\n" + "="*80)
    click.echo("DATA PROFILE: enriched records")
    click.echo("="*80)
    click.echo(f"Total rows: {len(result.enriched):,}")
    click.echo(f"Rows with complete weather: {len(result.cleaned):,}")
    click.echo("\n### COLUMN INFORMATION ###")
    for _, row in cleaning.profile_columns(result.enriched).iterrows():
        click.echo(f"  {row['column']:15} - {row['dtype']:15} - {row['nulls']:8,} nulls ({row['null_pct']:5.2f}%)")

    report = cleaning.missing_data_report(result.enriched, by=by, fields=WEATHER_FIELDS)
    click.echo(f"\n### MISSING WEATHER BY {by.upper()} ###")
    click.echo(report.to_string())
    click.echo(f"\nTotal missing weather values: {report['total_missing'].sum():,}")


@cli.command(name="stats")
@click.option('--cleaned', 'cleaned_path', required=True,
              type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
              help='cleaned.csv written by the run command')
@click.option('--factor', type=click.Choice(['sex', 'age_group', 'flag', 'race']), default='sex', show_default=True)
def stats_command(cleaned_path: Path, factor: str):
    """One-way ANOVA and Tukey HSD of finishing time for one factor."""
    cleaned = pd.read_csv(cleaned_path)
    try:
        anova = stats.one_way_anova(cleaned, factor)
        tukey = stats.tukey_hsd(cleaned, factor)
    except PIPELINE_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"### ONE-WAY ANOVA: finish_minutes ~ {factor} ###")
    click.echo(anova.to_string())
    click.echo(f"\n### TUKEY HSD: {factor} ###")
    click.echo(tukey.to_string(index=False))


if __name__ == "__main__":
    cli()
