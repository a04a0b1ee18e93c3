# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Fetch every source and atomically reload the DuckDB tables."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

from epiload.common.errors import ConfigError
from epiload.common.logs import configure_root_logger
from epiload.ingestion._exit_policy import EXIT_DATASET_FAILED
from epiload.ingestion.config import DATASETS, load_config
from epiload.pipeline.run import run_pipeline

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Load case and intervention data into DuckDB",
    )
    parser.add_argument(
        "--cache-dir",
        default=None,
        help="Directory for cached downloads (default: EPILOAD_CACHE_DIR or no cache)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace tables even when the new row count regresses",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="DuckDB URL or path (default: EPILOAD_DB_URL or ./epiload_data/epiload.duckdb)",
    )
    parser.add_argument(
        "--debug-dir",
        default=None,
        help="Write case-data.json and intervention-data.json here before loading",
    )
    parser.add_argument(
        "--dataset",
        action="append",
        choices=list(DATASETS),
        dest="datasets",
        help="Dataset to load; repeat for several (default: all)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Alternate sources.yml (default: packaged config)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("EPILOAD_LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_root_logger(level=args.log_level)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        LOGGER.error("cli.config_invalid | error=%s", exc)
        return EXIT_DATASET_FAILED

    return run_pipeline(
        config,
        cache_dir=args.cache_dir,
        force=args.force,
        db_url=args.db_url,
        debug_dir=args.debug_dir,
        datasets=args.datasets,
    )


if __name__ == "__main__":  # pragma: no cover - exercised via CLI
    sys.exit(main())
