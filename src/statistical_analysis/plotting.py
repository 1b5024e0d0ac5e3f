import logging

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from src.data_preparation.config import SEVERITY_GROUP
from src.statistical_analysis.descriptive import flag_outliers

logger = logging.getLogger(__name__)


def _finish(fig, save_path):
    if not save_path:
        plt.tight_layout()
        plt.show()
        return
    try:
        plt.tight_layout()
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.info(f"Plot saved to {save_path}")
    finally:
        plt.close(fig)


def plot_group_boxplot(df, column, group_col=SEVERITY_GROUP, save_path: str = None, seed: int = 0):
    """
    Plot one box per group with the individual values overlaid.

    Values beyond the 1.5 x IQR whiskers of their group are highlighted in red.

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned subject table.
    column : str
        Numeric column to plot.
    group_col : str, optional
        Categorical grouping column. Defaults to Severity group.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.
    seed : int, optional
        Seed for the horizontal jitter of the points.
    """
    levels = list(df[group_col].cat.categories)
    outliers = flag_outliers(df, column, group_col)
    rng = np.random.default_rng(seed)

    fig, ax = plt.subplots(figsize=(2.5 * len(levels) + 1, 5))

    data = [df.loc[df[group_col] == level, column].dropna().to_numpy() for level in levels]
    ax.boxplot(data, showfliers=False)
    ax.set_xticks(range(1, len(levels) + 1), levels)

    for i, level in enumerate(levels, start=1):
        in_group = (df[group_col] == level) & df[column].notna()
        values = df.loc[in_group, column]
        flagged = outliers[in_group]
        x = i + rng.uniform(-0.12, 0.12, size=len(values))
        ax.scatter(x[~flagged.to_numpy()], values[~flagged], color="black", alpha=0.6, s=18)
        ax.scatter(
            x[flagged.to_numpy()],
            values[flagged],
            color="red",
            s=30,
            label="Outlier" if i == 1 else None,
        )

    if outliers.any():
        ax.legend()
    ax.set_xlabel(group_col)
    ax.set_ylabel(column)
    ax.set_title(f"{column} by {group_col}")
    ax.grid(True, axis="y", alpha=0.3)

    _finish(fig, save_path)


def plot_residual_scatter(result, save_path: str = None):
    """
    Scatter residual(B) against residual(A) with the least-squares line.

    Results without a defined correlation are drawn as points only, and an
    empty axis is drawn when no complete rows remain.

    Parameters
    ----------
    result : ResidualCorrelationResult
        Output of ``residual_correlation``.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.
    """
    residuals = result.residuals
    if residuals is None:
        residuals = pd.DataFrame(columns=[result.measure_a, result.measure_b], dtype=float)

    x = residuals[result.measure_b]
    y = residuals[result.measure_a]

    fig, ax = plt.subplots(figsize=(6, 5))
    ax.scatter(x, y, alpha=0.7, edgecolor="black")

    if result.is_defined:
        xs = np.linspace(x.min(), x.max(), 100)
        ax.plot(xs, result.intercept + result.slope * xs, "r-", linewidth=2)
        ax.set_title(
            f"{result.label or result.measure_a}\nr = {result.r:.2f}, p = {result.p_value:.4f}"
        )
    else:
        ax.set_title(
            f"{result.label or result.measure_a}\ncorrelation undefined (n = {result.n})"
        )

    controls = ", ".join(result.covariates)
    ax.set_xlabel(f"{result.measure_b} residuals | {controls}")
    ax.set_ylabel(f"{result.measure_a} residuals | {controls}")
    ax.grid(True, alpha=0.3)

    _finish(fig, save_path)
