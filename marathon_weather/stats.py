from itertools import combinations
from typing import Sequence

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from scipy.stats import pearsonr
from statsmodels.stats.anova import anova_lm
from statsmodels.stats.multicomp import pairwise_tukeyhsd

from marathon_weather.constants import WEATHER_FIELDS

INSUFFICIENT = "insufficient data"


class InsufficientDataError(ValueError):
    """Too little data to produce a meaningful statistic."""


def _require_rows(df: pd.DataFrame, columns: Sequence[str], minimum: int = 1) -> pd.DataFrame:
    complete = df.dropna(subset=list(columns))
    if len(complete) < minimum:
        raise InsufficientDataError(
            f"{INSUFFICIENT}: {len(complete)} complete rows for {list(columns)}, need {minimum}"
        )
    return complete


def _require_levels(df: pd.DataFrame, factor: str) -> None:
    levels = df[factor].dropna().unique()
    if len(levels) < 2:
        raise InsufficientDataError(f"{INSUFFICIENT}: {factor} has {len(levels)} level(s), need 2")


def grouped_summary(df: pd.DataFrame, by, value: str = "finish_minutes") -> pd.DataFrame:
    """
    Count, mean and standard deviation of value per group.

    Only observed group combinations are returned, sorted by the group key.
    A group of one has a missing std rather than zero.
    """
    by = [by] if isinstance(by, str) else list(by)
    complete = _require_rows(df, by + [value])
    return (
        complete.groupby(by, observed=True, sort=True)[value]
        .agg(["count", "mean", "std"])
        .reset_index()
    )


def fastest_age(df: pd.DataFrame, by=("race", "sex"), value: str = "finish_minutes") -> pd.DataFrame:
    """
    Age with the lowest mean finishing time in each group.

    Ties go to the youngest age: means are ordered by ascending age and the
    first minimum wins.

    Returns:
        pd.DataFrame with the group columns, 'age' and 'mean_<value>'
    """
    by = list(by)
    complete = _require_rows(df, by + ["age", value])
    means = (
        complete.groupby(by + ["age"], observed=True, sort=True)[value]
        .mean()
        .reset_index()
        .sort_values(by + ["age"], kind="mergesort")
    )
    idx = means.groupby(by, observed=True, sort=True)[value].idxmin()
    return (
        means.loc[idx.to_numpy()]
        .rename(columns={value: f"mean_{value}"})
        .reset_index(drop=True)
    )


def weather_correlations(df: pd.DataFrame, target: str = "finish_minutes",
                         variables: Sequence[str] = WEATHER_FIELDS) -> pd.DataFrame:
    """
    Pearson correlation between the target and each weather variable.

    Each variable uses its own pairwise-complete rows. Variables with fewer
    than three pairs, or with no variance on either side, are reported with
    missing statistics and an 'insufficient data' status.
    """
    if df.empty:
        raise InsufficientDataError(f"{INSUFFICIENT}: no rows to correlate")

    rows = []
    for var in variables:
        pairs = df[[target, var]].dropna()
        n = len(pairs)
        if n < 3 or pairs[target].nunique() < 2 or pairs[var].nunique() < 2:
            rows.append({"variable": var, "n": n, "r": np.nan, "p_value": np.nan, "status": INSUFFICIENT})
            continue
        r, p_value = pearsonr(pairs[var], pairs[target])
        rows.append({"variable": var, "n": n, "r": float(r), "p_value": float(p_value), "status": "ok"})
    return pd.DataFrame(rows, columns=["variable", "n", "r", "p_value", "status"])


def _drop_unused_levels(df: pd.DataFrame, factors: Sequence[str]) -> pd.DataFrame:
    # empty categories would become all-zero design columns
    df = df.copy()
    for factor in factors:
        if isinstance(df[factor].dtype, pd.CategoricalDtype):
            df[factor] = df[factor].cat.remove_unused_categories()
        _require_levels(df, factor)
    return df


def _require_residual(model, rows: int) -> None:
    if model.df_resid <= 0:
        raise InsufficientDataError(f"{INSUFFICIENT}: {rows} rows for {len(model.params)} model terms")
    # constant groups leave only rounding error in the residual
    if model.ssr <= 1e-10 * max(model.centered_tss, 1.0):
        raise InsufficientDataError(f"{INSUFFICIENT}: no variance within groups")


def one_way_anova(df: pd.DataFrame, factor: str, value: str = "finish_minutes") -> pd.DataFrame:
    complete = _drop_unused_levels(_require_rows(df, [factor, value], minimum=3), [factor])
    model = smf.ols(f"{value} ~ C({factor})", data=complete).fit()
    _require_residual(model, len(complete))
    return anova_lm(model, typ=2)


def factorial_anova(df: pd.DataFrame, factors: Sequence[str] = ("sex", "age_group", "flag"),
                    value: str = "finish_minutes") -> pd.DataFrame:
    """
    Factorial ANOVA with every two- and three-way interaction.

    Type II sums of squares, factors taken as categorical.

    Raises:
        InsufficientDataError: If a factor has a single level, there are
            no more rows than model terms, or no variance within cells
    """
    factors = list(factors)
    complete = _drop_unused_levels(_require_rows(df, factors + [value]), factors)

    formula = f"{value} ~ " + " * ".join(f"C({f})" for f in factors)
    model = smf.ols(formula, data=complete).fit()
    _require_residual(model, len(complete))
    return anova_lm(model, typ=2)


def tukey_hsd(df: pd.DataFrame, factor: str, value: str = "finish_minutes", alpha: float = 0.05) -> pd.DataFrame:
    """
    Pairwise mean differences between factor levels, Tukey HSD.

    p-values are family-wise adjusted across all pairs of the factor.

    Returns:
        pd.DataFrame with group1, group2, meandiff, p_adj, lower, upper, reject
    """
    complete = _require_rows(df, [factor, value], minimum=3)
    _require_levels(complete, factor)
    counts = complete[factor].astype(str).value_counts()
    if (counts < 2).any():
        raise InsufficientDataError(
            f"{INSUFFICIENT}: {factor} levels with fewer than 2 rows: {sorted(counts[counts < 2].index)}"
        )

    result = pairwise_tukeyhsd(complete[value].to_numpy(), complete[factor].astype(str).to_numpy(), alpha=alpha)
    pairs = list(combinations(result.groupsunique, 2))
    return pd.DataFrame({
        "group1": [a for a, _ in pairs],
        "group2": [b for _, b in pairs],
        "meandiff": result.meandiffs,
        "p_adj": result.pvalues,
        "lower": result.confint[:, 0],
        "upper": result.confint[:, 1],
        "reject": result.reject,
    })


def flag_summary(df: pd.DataFrame, value: str = "finish_minutes") -> pd.DataFrame:
    """Records, mean WBGT and mean finishing time per flag condition."""
    complete = _require_rows(df, ["flag", value])
    return (
        complete.groupby("flag", observed=True, sort=True)
        .agg(records=(value, "count"), mean_wbgt=("wbgt", "mean"), mean_finish=(value, "mean"))
        .reset_index()
    )
