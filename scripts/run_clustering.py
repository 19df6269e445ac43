#!/usr/bin/env python3
"""ReportFusion CLI: cluster a batch of citizen reports, or fold new reports
into clusters saved by a previous run.

Usage:
    python scripts/run_clustering.py --input reports.json
    python scripts/run_clustering.py --input new.json --existing out/clusters.json \\
        --known-reports out/reports.json --orphaned out/orphaned.json
    python scripts/run_clustering.py --input reports.json --threshold 0.5 --spatial-prefilter

Writes clusters.json, orphaned.json, recommendations.json and reports.json to
the output directory. Pass those files back with --existing, --orphaned and
--known-reports on the next run for incremental maintenance.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import (  # noqa: E402
    ASSIGNMENT_POLICY,
    CATEGORY_WEIGHT,
    CONTENT_WEIGHT,
    DEFAULT_LOG_LEVEL,
    LOCATION_WEIGHT,
    MATRIX_MAX_WORKERS,
    MAX_DISTANCE_KM,
    MIN_SUBMISSIONS,
    OUTPUT_ROOT,
    SEMANTIC_SIMILARITY_THRESHOLD,
    TEMPORAL_WINDOW_HOURS,
    TIME_WEIGHT,
)
from config.settings import ClusteringConfig, SimilarityWeights  # noqa: E402
from reportfusion.analysis.cluster_graph import related_groups  # noqa: E402
from reportfusion.engine import cluster_reports, rank_clusters, update_clusters  # noqa: E402
from reportfusion.io.persistence import (  # noqa: E402
    load_clusters,
    load_reports,
    recommendation_to_dict,
    report_to_dict,
    save_clusters,
    save_json,
)
from reportfusion.models.pipeline import CancellationToken  # noqa: E402
from reportfusion.models.reports import ReportStore  # noqa: E402
from reportfusion.utils.logging_utils import configure_logging  # noqa: E402


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argparse argument parser with all ClusteringConfig fields as flags."""
    parser = argparse.ArgumentParser(
        prog="run_clustering",
        description="ReportFusion: cluster citizen issue reports",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Inputs and outputs ──────────────────────────────────────────────────────
    parser.add_argument("--input", type=str, required=True, help="JSON list of reports to process")
    parser.add_argument(
        "--existing",
        type=str,
        default=None,
        help="clusters.json from a previous run; switches to incremental maintenance",
    )
    parser.add_argument(
        "--known-reports",
        type=str,
        default=None,
        help="reports.json from a previous run (resolves existing cluster members)",
    )
    parser.add_argument(
        "--orphaned",
        type=str,
        default=None,
        help="orphaned.json from a previous run, retried in this pass",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help=f"Output directory (default: {OUTPUT_ROOT}/<timestamp>)",
    )

    # ── Clustering parameters ───────────────────────────────────────────────────
    parser.add_argument(
        "--max-distance-km",
        type=float,
        default=MAX_DISTANCE_KM,
        help="Geographic decay radius and hard cutoff in km",
    )
    parser.add_argument(
        "--min-submissions",
        type=int,
        default=MIN_SUBMISSIONS,
        help="Minimum neighbourhood size and minimum cluster size",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=SEMANTIC_SIMILARITY_THRESHOLD,
        help="Overall-similarity cutoff for neighbourhood and cluster assignment",
    )
    parser.add_argument(
        "--temporal-window-hours",
        type=float,
        default=TEMPORAL_WINDOW_HOURS,
        help="Temporal similarity window in hours",
    )

    # ── Weights ─────────────────────────────────────────────────────────────────
    parser.add_argument("--category-weight", type=float, default=CATEGORY_WEIGHT)
    parser.add_argument("--location-weight", type=float, default=LOCATION_WEIGHT)
    parser.add_argument("--content-weight", type=float, default=CONTENT_WEIGHT)
    parser.add_argument("--time-weight", type=float, default=TIME_WEIGHT)
    parser.add_argument(
        "--use-four-way-weights",
        action="store_true",
        default=False,
        help="Score with the category/location/content/time weights instead of the five-way defaults",
    )

    # ── Execution ───────────────────────────────────────────────────────────────
    parser.add_argument(
        "--max-workers",
        type=int,
        default=MATRIX_MAX_WORKERS,
        help="Worker threads for the similarity matrix",
    )
    parser.add_argument(
        "--spatial-prefilter",
        action="store_true",
        default=False,
        help="Skip report pairs farther apart than --max-distance-km when safe",
    )
    parser.add_argument(
        "--assignment-policy",
        type=str,
        default=ASSIGNMENT_POLICY,
        choices=["first_match", "best_match"],
        help="How maintenance picks among qualifying clusters",
    )
    parser.add_argument(
        "--join-new-clusters",
        action="store_true",
        default=False,
        help="Let new reports join clusters opened earlier in the same update",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=float,
        default=None,
        help="Cancel the run if it exceeds this many seconds",
    )

    # ── Logging ─────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", type=str, default=None, help="Override the log file path")

    return parser


def args_to_config(args: argparse.Namespace) -> ClusteringConfig:
    """Convert parsed CLI arguments to a ClusteringConfig instance."""
    config = ClusteringConfig(
        max_distance_km=args.max_distance_km,
        min_submissions=args.min_submissions,
        semantic_similarity_threshold=args.threshold,
        temporal_window_hours=args.temporal_window_hours,
        category_weight=args.category_weight,
        location_weight=args.location_weight,
        content_weight=args.content_weight,
        time_weight=args.time_weight,
        max_workers=args.max_workers,
        spatial_prefilter=args.spatial_prefilter,
        assignment_policy=args.assignment_policy,
        join_new_clusters=args.join_new_clusters,
        log_level=args.log_level,
    )
    if args.use_four_way_weights:
        config.similarity_weights = SimilarityWeights.from_config(config)
    return config


def main() -> None:
    """CLI entrypoint: parse arguments, run clustering, write outputs."""
    parser = build_arg_parser()
    args = parser.parse_args()

    configure_logging(log_level=args.log_level, log_file=args.log_file)
    logger = logging.getLogger("reportfusion.run_clustering")

    try:
        config = args_to_config(args)
    except ValueError as exc:
        parser.error(str(exc))

    now = datetime.now().astimezone()
    output_dir = Path(args.output_dir or Path(config.output_root) / now.strftime("%Y%m%d_%H%M%S"))
    cancel = CancellationToken(timeout_seconds=args.timeout_seconds) if args.timeout_seconds else None

    try:
        reports = load_reports(args.input)
        logger.info("Loaded %d reports from %s", len(reports), args.input)

        if args.existing:
            existing = load_clusters(args.existing)
            known = load_reports(args.known_reports) if args.known_reports else []
            carried = load_reports(args.orphaned) if args.orphaned else []
            store = ReportStore(known)
            result = update_clusters(
                existing, reports, store, config=config, orphaned=carried, now=now, cancel=cancel
            )
            if not result.success:
                logger.error("Update failed: %s %s", result.error, result.issues)
                sys.exit(1)
            clusters = result.data.updated_clusters + result.data.new_clusters
            orphaned = result.data.orphaned
            merged = store.copy()
            merged.extend(carried + reports)
            all_reports = list(merged)
            logger.info(
                "Updated %d clusters, created %d", len(existing), len(result.data.new_clusters)
            )
        else:
            result = cluster_reports(reports, config=config, cancel=cancel, now=now)
            if not result.success:
                logger.error("Clustering failed: %s %s", result.error, result.issues)
                sys.exit(1)
            for warning in result.warnings:
                logger.warning(warning)
            clusters = result.data.clusters
            orphaned = result.data.orphaned
            all_reports = reports
            metrics = result.data.metrics
            logger.info(
                "Formed %d clusters (avg size %.2f, %.0f%% clustered) in %.0f ms",
                metrics.total_clusters,
                metrics.avg_cluster_size,
                metrics.clustering_accuracy * 100,
                metrics.processing_time_ms,
            )

        ranked = rank_clusters(clusters, now=now)
        if not ranked.success:
            logger.error("Ranking failed: %s %s", ranked.error, ranked.issues)
            sys.exit(1)

        groups = related_groups(clusters, config)
        if groups:
            logger.info("%d groups of related clusters found", len(groups))

        save_clusters(clusters, output_dir / "clusters.json")
        save_json([report_to_dict(r) for r in orphaned], output_dir / "orphaned.json")
        save_json(
            [recommendation_to_dict(rec) for rec in ranked.data],
            output_dir / "recommendations.json",
        )
        save_json([report_to_dict(r) for r in all_reports], output_dir / "reports.json")
        logger.info("Outputs written to %s", output_dir)

    except KeyboardInterrupt:
        logger.info("Clustering interrupted by user")
        sys.exit(0)
    except (OSError, ValueError) as exc:
        logger.error("Clustering failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
