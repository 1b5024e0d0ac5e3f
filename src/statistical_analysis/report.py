"""
Report generation for the glaucoma neurochemistry analysis.

This module collects the output of ``run_analysis_pipeline`` and renders it as
a Markdown document with tables, interpretation and figure links.
"""

import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import numpy as np

from src.statistical_analysis.config import ALPHA

logger = logging.getLogger(__name__)


def _format_value(value) -> str:
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        return "-" if math.isnan(value) else f"{value:.4f}"
    return str(value)


def _relative_path(path: str, start: Path) -> str:
    """Path of a figure as seen from the report directory."""
    return Path(os.path.relpath(Path(path).resolve(), start.resolve())).as_posix()


def _markdown_table(df, index_name: str = "") -> list[str]:
    """Render a DataFrame as Markdown table lines."""
    header = [index_name] + [str(c) for c in df.columns]
    lines = [
        "| " + " | ".join(header) + " |",
        "|" + "|".join([":---"] * len(header)) + "|",
    ]
    for idx, *values in df.itertuples(index=True, name=None):
        cells = [str(idx)] + [_format_value(v) for v in values]
        lines.append("| " + " | ".join(cells) + " |")
    return lines


@dataclass
class MeasureResult:
    """Group comparison results for one measure."""

    measure: str
    summary: object
    pvalue_matrix: object
    min_adjusted_p: float = None
    plot_path: str = None


class ReportCollector:
    """Collects analysis results for report generation."""

    def __init__(self, source: str = None, alpha: float = ALPHA):
        self.source = source
        self.alpha = alpha
        self.demographics = None
        self.measures: list[MeasureResult] = []
        self.correlations: list = []
        self.correlation_plots: dict = {}
        self.errors: list[str] = []

    def add_pipeline_output(self, output: dict):
        """
        Add the output of ``run_analysis_pipeline``.

        Parameters
        ----------
        output : dict
            Dictionary returned by ``run_analysis_pipeline``.
        """
        figures = output.get("figures", {})
        for message in output.get("errors", []):
            self.add_error(message)
        self.demographics = output.get("demographics")

        for measure, summary in output.get("group_summaries", {}).items():
            tests = output["pairwise_tests"][measure]
            self.measures.append(
                MeasureResult(
                    measure=measure,
                    summary=summary,
                    pvalue_matrix=output["pvalue_matrices"][measure],
                    min_adjusted_p=float(tests["p_adjusted"].min()),
                    plot_path=figures.get(f"boxplot {measure}"),
                )
            )

        for name, result in output.get("residual_correlations", {}).items():
            self.correlations.append(result)
            plot_path = figures.get(f"residuals {name}")
            if plot_path:
                self.correlation_plots[name] = plot_path

    def add_error(self, message: str):
        self.errors.append(message)

    def get_summary_stats(self) -> dict:
        """
        Count significant findings.

        Returns
        -------
        dict
            Numbers of measures and residual analyses, and how many of them
            are significant at ``alpha``.
        """
        significant_measures = [
            m
            for m in self.measures
            if m.min_adjusted_p is not None
            and not math.isnan(m.min_adjusted_p)
            and m.min_adjusted_p < self.alpha
        ]
        significant_correlations = [
            r for r in self.correlations if r.is_defined and r.p_value < self.alpha
        ]
        return {
            "measures_tested": len(self.measures),
            "measures_with_group_difference": len(significant_measures),
            "correlations_tested": len(self.correlations),
            "significant_correlations": len(significant_correlations),
        }


def generate_markdown_report(collector: ReportCollector, output_path: str) -> str:
    """
    Generate a Markdown report from collected analysis results.

    Parameters
    ----------
    collector : ReportCollector
        Collector containing analysis results.
    output_path : str
        Path to save the Markdown report.

    Returns
    -------
    str
        Path to the generated report.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    stats = collector.get_summary_stats()
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines = []

    # Header
    lines.append("# Neurotransmitters, Retinal Structure and Neural Specificity in Glaucoma")
    lines.append("")
    lines.append(f"**Generated:** {timestamp}")
    lines.append("")
    if collector.source:
        lines.append(f"**Data source:** {collector.source}")
        lines.append("")

    # Summary section
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Significance level:** {collector.alpha}")
    lines.append(
        f"- **Measures with a group difference (Bonferroni):** "
        f"{stats['measures_with_group_difference']} of {stats['measures_tested']}"
    )
    lines.append(
        f"- **Significant residual correlations:** "
        f"{stats['significant_correlations']} of {stats['correlations_tested']}"
    )
    lines.append("")

    if collector.errors:
        lines.append("## Errors")
        lines.append("")
        for error in collector.errors:
            lines.append(f"- {error}")
        lines.append("")

    # Demographics
    if collector.demographics is not None:
        lines.append("## Participants")
        lines.append("")
        lines.extend(_markdown_table(collector.demographics, "Severity group"))
        lines.append("")

    # Group comparisons
    if collector.measures:
        lines.append("## Group Comparisons")
        lines.append("")

    for m in collector.measures:
        lines.append(f"### {m.measure}")
        lines.append("")
        lines.extend(_markdown_table(m.summary, "Severity group"))
        lines.append("")
        lines.append("Pairwise t-tests, Bonferroni-adjusted p-values:")
        lines.append("")
        lines.extend(_markdown_table(m.pvalue_matrix))
        lines.append("")

        if m.min_adjusted_p is not None and not math.isnan(m.min_adjusted_p):
            if m.min_adjusted_p < collector.alpha:
                lines.append(
                    f"At least one pair of severity groups differs in {m.measure} "
                    f"(smallest adjusted p = {m.min_adjusted_p:.4f})."
                )
            else:
                lines.append(
                    f"No pair of severity groups differs significantly in {m.measure} "
                    f"(smallest adjusted p = {m.min_adjusted_p:.4f})."
                )
            lines.append("")

        if m.plot_path:
            plot_rel_path = _relative_path(m.plot_path, output_path.parent)
            lines.append(f'<img src="{plot_rel_path}" alt="{m.measure} by group" height="300">')
            lines.append("")

    # Residual correlations
    if collector.correlations:
        lines.append("## Partial Associations")
        lines.append("")
        lines.append("| Analysis | Covariates | n | r | p-value |")
        lines.append("|:---------|:-----------|:--|:--|:--------|")
        for r in collector.correlations:
            lines.append(
                f"| {r.label or r.measure_a} | {', '.join(r.covariates)} | {r.n} | "
                f"{_format_value(r.r)} | {_format_value(r.p_value)} |"
            )
        lines.append("")

    for r in collector.correlations:
        name = r.label or f"{r.measure_a} vs {r.measure_b}"
        lines.append(f"### {name}")
        lines.append("")
        lines.append(r.interpretation(collector.alpha))
        lines.append("")

        plot_path = collector.correlation_plots.get(name)
        if plot_path:
            plot_rel_path = _relative_path(plot_path, output_path.parent)
            lines.append(f'<img src="{plot_rel_path}" alt="{name} residuals" height="300">')
            lines.append("")

    # Write report
    report_content = "\n".join(lines)
    output_path.write_text(report_content)

    logger.info(f"Report generated: {output_path}")
    return str(output_path)
