"""Command-line entry point for the ranging pipeline daemon."""

from __future__ import annotations

import argparse
import sys

from .config import RangingSettings
from .daemon import run_daemon


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the ranging estimation pipeline")
    parser.add_argument("--config", help="Path to TOML configuration file")
    parser.add_argument("--source", help="Serial/USB device path, file, or 'simulate'")
    parser.add_argument("--algorithm", help="Strategy id (movingAverage, medianAverage, kalmanFilter)")
    parser.add_argument("--log-level", help="Logging level override")
    args = parser.parse_args(argv)

    settings = RangingSettings.from_toml(args.config) if args.config else RangingSettings()
    if args.source:
        settings.ingestion = settings.ingestion.model_copy(update={"source": args.source})
    if args.algorithm:
        settings.pipeline = settings.pipeline.model_copy(update={"algorithm": args.algorithm})
    if args.log_level:
        settings.logging = settings.logging.model_copy(update={"level": args.log_level})

    run_daemon(settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
