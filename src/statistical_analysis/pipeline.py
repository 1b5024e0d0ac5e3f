import logging
import re
from pathlib import Path

from src.data_preparation.config import SEVERITY_GROUP
from src.statistical_analysis.config import DEFAULT_GROUP_MEASURES, DEFAULT_RESIDUAL_ANALYSES
from src.statistical_analysis.descriptive import demographics_table, group_summary
from src.statistical_analysis.plotting import plot_group_boxplot, plot_residual_scatter
from src.statistical_analysis.residual_correlation import run_residual_analyses
from src.statistical_analysis.statistical_tests import pairwise_t_tests, pvalue_matrix

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def run_analysis_pipeline(
    df,
    group_measures=None,
    analyses=None,
    pool_sd=False,
    figures_dir=None,
    show_plots=False,
):
    """
    Run the full analysis on the cleaned subject table.

    Computes demographics, per-group summaries and Bonferroni-corrected
    pairwise t-tests for each group measure, then the residual correlation
    analyses. Each analysis works on its own filtered copy of ``df``.

    Parameters
    ----------
    df : pd.DataFrame
        Output of ``clean_dataset``.
    group_measures : list of str, optional
        Measures compared across severity groups. Defaults to GABA/tCr and
        Glutamate/tCr.
    analyses : list of ResidualAnalysis, optional
        Residual correlation analyses. Defaults to the four standard ones.
    pool_sd : bool, optional
        Use the SD pooled over all groups in the pairwise t-tests.
    figures_dir : str or Path, optional
        If given, save all figures in this directory.
    show_plots : bool, optional
        If True and ``figures_dir`` is None, show figures interactively.

    Returns
    -------
    dict
        Keys "demographics", "group_summaries", "pairwise_tests",
        "pvalue_matrices", "residual_correlations", "figures" (name to saved
        path) and "errors" (messages of plotting failures).
    """
    group_measures = DEFAULT_GROUP_MEASURES if group_measures is None else group_measures
    analyses = DEFAULT_RESIDUAL_ANALYSES if analyses is None else analyses
    levels = list(df[SEVERITY_GROUP].cat.categories)

    if figures_dir is not None:
        figures_dir = Path(figures_dir)
        figures_dir.mkdir(parents=True, exist_ok=True)
    plotting = figures_dir is not None or show_plots

    out = {
        "demographics": demographics_table(df),
        "group_summaries": {},
        "pairwise_tests": {},
        "pvalue_matrices": {},
        "residual_correlations": {},
        "figures": {},
        "errors": [],
    }

    ##############################
    # Group comparisons
    ##############################

    for measure in group_measures:
        summary = group_summary(df, measure)
        tests = pairwise_t_tests(df, measure, pool_sd=pool_sd)

        out["group_summaries"][measure] = summary
        out["pairwise_tests"][measure] = tests
        out["pvalue_matrices"][measure] = pvalue_matrix(tests, levels)

        logger.info(
            f"{measure}: group means "
            + ", ".join(f"{g}={m:.4f}" for g, m in summary["mean"].items())
        )
        logger.info(f"{measure}: smallest adjusted p-value {tests['p_adjusted'].min():.4f}")

        if plotting:
            save_path = None
            if figures_dir is not None:
                save_path = str(figures_dir / f"boxplot_{_slug(measure)}.png")
            try:
                plot_group_boxplot(df, measure, save_path=save_path)
                if save_path:
                    out["figures"][f"boxplot {measure}"] = save_path
            except Exception as e:
                message = f"Plotting failed for {measure}: {e}"
                logger.error(message)
                out["errors"].append(message)

    ##############################
    # Residual correlations
    ##############################

    results = run_residual_analyses(df, analyses)
    out["residual_correlations"] = results

    if plotting:
        for name, result in results.items():
            save_path = None
            if figures_dir is not None:
                save_path = str(figures_dir / f"residuals_{_slug(name)}.png")
            try:
                plot_residual_scatter(result, save_path=save_path)
                if save_path:
                    out["figures"][f"residuals {name}"] = save_path
            except Exception as e:
                message = f"Plotting failed for {name}: {e}"
                logger.error(message)
                out["errors"].append(message)

    return out
