import logging

import pandas as pd

from src.data_preparation.config import AGE, GENDER, SEVERITY_GROUP

logger = logging.getLogger(__name__)


def group_summary(df, column, group_col=SEVERITY_GROUP):
    """
    Compute per-group descriptive statistics for one numeric column.

    Missing values are ignored within each group. Every level of the
    categorical ``group_col`` gets a row, even when it has no observations.

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned subject table.
    column : str
        Numeric column to summarise.
    group_col : str, optional
        Categorical grouping column. Defaults to Severity group.

    Returns
    -------
    pd.DataFrame
        Indexed by group, with columns "n", "mean", "median", "sd", "lower"
        (mean - sd) and "upper" (mean + sd). "sd" is the sample standard
        deviation and is NaN for groups with fewer than two values.
    """
    grouped = df.groupby(group_col, observed=False)[column]
    summary = grouped.agg(["count", "mean", "median", "std"])
    summary = summary.rename(columns={"count": "n", "std": "sd"})
    summary["n"] = summary["n"].astype(int)
    summary["lower"] = summary["mean"] - summary["sd"]
    summary["upper"] = summary["mean"] + summary["sd"]

    small = summary.index[summary["n"] < 2].tolist()
    if small:
        logger.warning(f"{column}: fewer than 2 values in group(s) {small}, SD is undefined")

    return summary


def flag_outliers(df, column, group_col=SEVERITY_GROUP):
    """
    Flag values outside the 1.5 x IQR whiskers of their own group.

    Returns
    -------
    pd.Series
        Boolean Series aligned with ``df``; missing values are never flagged.
    """
    values = df[column]
    grouped = values.groupby(df[group_col], observed=False)
    q1 = grouped.transform(lambda s: s.quantile(0.25))
    q3 = grouped.transform(lambda s: s.quantile(0.75))
    iqr = q3 - q1
    outside = (values < q1 - 1.5 * iqr) | (values > q3 + 1.5 * iqr)
    return outside.astype(bool)


def demographics_table(df, group_col=SEVERITY_GROUP):
    """Per-group subject count, age mean and SD, and gender counts."""
    grouped = df.groupby(group_col, observed=False)
    table = pd.DataFrame(
        {
            "n": grouped.size(),
            "age_mean": grouped[AGE].mean(),
            "age_sd": grouped[AGE].std(),
        }
    )
    gender_counts = pd.crosstab(df[group_col], df[GENDER], dropna=False)
    gender_counts = gender_counts.reindex(table.index, fill_value=0)
    for level in df[GENDER].cat.categories:
        if level in gender_counts.columns:
            table[f"{GENDER} ({level})"] = gender_counts[level].astype(int)
        else:
            table[f"{GENDER} ({level})"] = 0
    return table
