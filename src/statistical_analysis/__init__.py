"""Statistical analysis of neurotransmitter levels across glaucoma severity groups."""

from src.statistical_analysis.config import (
    DEFAULT_GROUP_MEASURES,
    DEFAULT_RESIDUAL_ANALYSES,
    ResidualAnalysis,
)
from src.statistical_analysis.descriptive import (
    demographics_table,
    flag_outliers,
    group_summary,
)
from src.statistical_analysis.pipeline import run_analysis_pipeline
from src.statistical_analysis.report import (
    ReportCollector,
    generate_markdown_report,
)
from src.statistical_analysis.residual_correlation import (
    ResidualCorrelationResult,
    residual_correlation,
    run_residual_analyses,
)
from src.statistical_analysis.statistical_tests import (
    adjust_pvalues,
    pairwise_t_tests,
    pvalue_matrix,
)

__all__ = [
    # Main pipeline
    "run_analysis_pipeline",
    # Configuration
    "ResidualAnalysis",
    "DEFAULT_GROUP_MEASURES",
    "DEFAULT_RESIDUAL_ANALYSES",
    # Report generation
    "ReportCollector",
    "generate_markdown_report",
    # Descriptive statistics
    "group_summary",
    "flag_outliers",
    "demographics_table",
    # Statistical tests
    "adjust_pvalues",
    "pairwise_t_tests",
    "pvalue_matrix",
    # Residual correlation
    "ResidualCorrelationResult",
    "residual_correlation",
    "run_residual_analyses",
]
