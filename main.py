import argparse
import logging
import pathlib
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

import pandas as pd

from src.data_preparation import (
    HeaderArtifactError,
    SchemaMismatchError,
    clean_dataset,
    load_raw_dataset,
)
from src.data_preparation.config import DATA_SOURCE, SEVERITY_GROUP, SEVERITY_LEVELS
from src.statistical_analysis.config import ALPHA, DEFAULT_GROUP_MEASURES
from src.statistical_analysis.descriptive import demographics_table, group_summary
from src.statistical_analysis.pipeline import run_analysis_pipeline
from src.statistical_analysis.report import ReportCollector, generate_markdown_report
from src.statistical_analysis.statistical_tests import pairwise_t_tests, pvalue_matrix


def configure_logging(log_level: str):
    """Configure logging with the specified level."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    return logging.getLogger(__name__)


def _load_dataset(args, logger):
    """Load and clean the subject table named by --source or the environment."""
    source = args.source or DATA_SOURCE
    if not source:
        raise SystemExit(
            "No data source given. Use --source or set GLAUCOMA_MRS_DATA_SOURCE."
        )

    raw = load_raw_dataset(source)
    try:
        df = clean_dataset(
            raw,
            severity_levels=SEVERITY_LEVELS,
            expect_header_artifact=not args.no_header_artifact,
        )
    except (SchemaMismatchError, HeaderArtifactError) as e:
        raise SystemExit(f"Cannot use {source}: {e}") from e

    logger.info(f"Analysing {len(df)} subjects from {source}")
    return source, df


def _print_frame(title: str, df):
    print(f"\n{title}")
    print("-" * len(title))
    with pd.option_context("display.width", 120, "display.max_columns", None):
        print(df.to_string(float_format=lambda v: f"{v:.4f}"))


def cmd_describe(args):
    """Print demographics, group summaries and pairwise tests."""
    logger = configure_logging(args.log_level)
    _, df = _load_dataset(args, logger)

    _print_frame("Participants", demographics_table(df))

    for measure in DEFAULT_GROUP_MEASURES:
        _print_frame(f"{measure} by severity group", group_summary(df, measure))
        tests = pairwise_t_tests(df, measure, pool_sd=args.pool_sd)
        _print_frame(
            f"{measure}: pairwise t-tests (Bonferroni-adjusted p-values)",
            pvalue_matrix(tests, list(df[SEVERITY_GROUP].cat.categories)),
        )


def cmd_analyze(args):
    """Run the full analysis pipeline."""
    logger = configure_logging(args.log_level)
    source, df = _load_dataset(args, logger)

    report_path = None
    figures_dir = pathlib.Path(args.figures_dir) if args.figures_dir else None

    if args.report:
        if args.report is True:
            # Default path
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            report_path = pathlib.Path(f"reports/analysis_report_{timestamp}.md")
        else:
            report_path = pathlib.Path(args.report)
        if args.report_plots:
            figures_dir = report_path.parent / "figures"

    output = run_analysis_pipeline(
        df,
        pool_sd=args.pool_sd,
        figures_dir=figures_dir,
        show_plots=args.plot and figures_dir is None,
    )

    for measure, summary in output["group_summaries"].items():
        _print_frame(f"{measure} by severity group", summary)
        _print_frame(
            f"{measure}: pairwise t-tests (Bonferroni-adjusted p-values)",
            output["pvalue_matrices"][measure],
        )

    print("\nPartial associations")
    print("--------------------")
    for result in output["residual_correlations"].values():
        print(f"- {result.interpretation(ALPHA)}")

    if report_path is not None:
        collector = ReportCollector(source=source, alpha=ALPHA)
        collector.add_pipeline_output(output)
        generate_markdown_report(collector, str(report_path))
        logger.info(f"Report generated: {report_path}")


def _add_common_arguments(parser):
    parser.add_argument(
        "--source",
        help="URL or path of the subject CSV (default: $GLAUCOMA_MRS_DATA_SOURCE)",
    )
    parser.add_argument(
        "--no-header-artifact",
        action="store_true",
        help="The CSV has no extra header row below the column names",
    )
    parser.add_argument(
        "--pool-sd",
        action="store_true",
        help="Use the SD pooled over all severity groups in pairwise t-tests",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)",
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Glaucoma MRS - neurotransmitters, retinal structure and neural specificity",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Describe command
    describe_parser = subparsers.add_parser(
        "describe", help="Print group summaries and pairwise t-tests"
    )
    _add_common_arguments(describe_parser)
    describe_parser.set_defaults(func=cmd_describe)

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Run the full statistical analysis")
    _add_common_arguments(analyze_parser)
    analyze_parser.add_argument(
        "--plot",
        action="store_true",
        help="Show boxplots and residual scatter plots interactively",
    )
    analyze_parser.add_argument(
        "--figures-dir",
        metavar="DIR",
        help="Save all plots to this directory instead of showing them",
    )
    analyze_parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Generate a Markdown report. Optionally specify output path (default: reports/analysis_report_<timestamp>.md)",
    )
    analyze_parser.add_argument(
        "--report-plots",
        action="store_true",
        help="Include plots in the report (requires --report)",
    )
    analyze_parser.set_defaults(func=cmd_analyze)

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command is None:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
