#!/usr/bin/env python3
"""cdrlink CLI — run the full link analysis over a record file.

Usage:
    python scripts/run_analysis.py --input case42.json
    python scripts/run_analysis.py --input case42.json --chain-max-gap-minutes 30 --label case42
    python scripts/run_analysis.py --input case42.json --sim-fallback-to-msisdn --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import (  # noqa: E402
    CHAIN_MAX_GAP_MINUTES,
    CHAIN_MIN_LENGTH,
    COPRESENCE_MIN_CLUSTER_SIZE,
    COPRESENCE_WINDOW_SECONDS,
    DEFAULT_LOG_LEVEL,
    MAX_RECORDS_FOR_GRAPH,
    MAX_WORKERS,
    OUTPUT_ROOT,
)
from config.settings import AnalysisConfig  # noqa: E402
from cdrlink.engine import run_analysis  # noqa: E402
from cdrlink.io.persistence import ensure_output_dir, load_records, save_json  # noqa: E402
from cdrlink.utils.logging_utils import configure_logging  # noqa: E402


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argparse argument parser with the AnalysisConfig fields as flags."""
    parser = argparse.ArgumentParser(
        prog="run_analysis",
        description="cdrlink — link analysis over call detail records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Input ───────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="JSON record file: a list of records, or an object of source id → records",
    )
    parser.add_argument(
        "--label",
        type=str,
        default=None,
        help="Run label used in the run id (defaults to the input file stem)",
    )

    # ── Contact graph ───────────────────────────────────────────────────────────
    parser.add_argument(
        "--max-records-for-graph",
        type=int,
        default=MAX_RECORDS_FOR_GRAPH,
        help="Record cap for graph construction; larger inputs are truncated",
    )

    # ── Conversation chains ─────────────────────────────────────────────────────
    parser.add_argument(
        "--chain-max-gap-minutes",
        type=float,
        default=CHAIN_MAX_GAP_MINUTES,
        help="Maximum minutes between consecutive interactions of a chain",
    )
    parser.add_argument(
        "--chain-min-length",
        type=int,
        default=CHAIN_MIN_LENGTH,
        help="Minimum interactions for a chain to be reported",
    )

    # ── Co-presence ─────────────────────────────────────────────────────────────
    parser.add_argument(
        "--copresence-window-seconds",
        type=int,
        default=COPRESENCE_WINDOW_SECONDS,
        help="Window after an anchor record within which others are co-present",
    )
    parser.add_argument(
        "--copresence-min-cluster-size",
        type=int,
        default=COPRESENCE_MIN_CLUSTER_SIZE,
        help="Minimum distinct identifiers for a co-presence event",
    )

    # ── Device correlation ──────────────────────────────────────────────────────
    parser.add_argument(
        "--sim-fallback-to-msisdn",
        action="store_true",
        default=False,
        help="Use the MSISDN as SIM identity when a record has no IMSI",
    )

    # ── Execution, output and logging ───────────────────────────────────────────
    parser.add_argument(
        "--max-workers",
        type=int,
        default=MAX_WORKERS,
        help="Worker threads running analysis components concurrently",
    )
    parser.add_argument(
        "--output-root",
        type=str,
        default=OUTPUT_ROOT,
        help="Root directory for analysis run outputs",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging verbosity level (falls back to CDRLINK_LOG_LEVEL, then {DEFAULT_LOG_LEVEL})",
    )

    return parser


def args_to_config(args: argparse.Namespace) -> AnalysisConfig:
    """Convert parsed CLI arguments to an AnalysisConfig instance.

    Args:
        args: Parsed argparse Namespace.

    Returns:
        AnalysisConfig populated from CLI flags.
    """
    overrides = {}
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return AnalysisConfig(
        max_records_for_graph=args.max_records_for_graph,
        chain_max_gap_minutes=args.chain_max_gap_minutes,
        chain_min_length=args.chain_min_length,
        copresence_window_seconds=args.copresence_window_seconds,
        copresence_min_cluster_size=args.copresence_min_cluster_size,
        sim_fallback_to_msisdn=args.sim_fallback_to_msisdn,
        max_workers=args.max_workers,
        output_root=args.output_root,
        **overrides,
    )


def setup_logging(log_level: str) -> None:
    """Configure logging from config/logging.yaml at the requested level.

    Args:
        log_level: One of DEBUG, INFO, WARNING, ERROR.
    """
    configure_logging(log_level=log_level)


def main(argv=None) -> None:
    """CLI entrypoint — parse arguments, load records, run the analysis, save the report."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logger = logging.getLogger("cdrlink.run_analysis")

    try:
        config = args_to_config(args)
        setup_logging(config.log_level)
        input_path = Path(args.input)
        label = args.label or input_path.stem
        logger.info("cdrlink analysis starting — input: %s", input_path)

        records = load_records(input_path)
        report = run_analysis(records, config, run_label=label)

        run_dir = ensure_output_dir(config.output_root, report.run_id)
        report_path = run_dir / "report.json"
        save_json(report, report_path)
        logger.info(
            "Analysis complete. Run ID: %s | warnings=%d | errors=%d | report: %s",
            report.run_id,
            len(report.warnings),
            len(report.errors),
            report_path,
        )
        if report.errors:
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        sys.exit(0)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Analysis aborted: %s", exc)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Analysis failed with unhandled exception: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
