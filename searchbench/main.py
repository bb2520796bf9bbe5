from __future__ import annotations

import argparse
import importlib
import json
import logging
import os
import sys
from pathlib import Path

from .config import MODES, BenchmarkConfig
from .errors import BenchmarkError
from .load import SearchFn, run_benchmark

LOGGER = logging.getLogger("searchbench")

MANIFEST_FILENAME = "run-manifest.json"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search backend load-testing harness")
    parser.add_argument(
        "--backend",
        default=os.environ.get("SEARCHBENCH_BACKEND"),
        help="Search adapter factory as 'module:callable', called with (address, index)",
    )
    parser.add_argument(
        "--address",
        default=os.environ.get("SEARCHBENCH_ADDRESS", "http://127.0.0.1:7700"),
        help="Base address of the search backend",
    )
    parser.add_argument(
        "--index", default=os.environ.get("SEARCHBENCH_INDEX", "movies")
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default=os.environ.get("SEARCHBENCH_MODE", "standard"),
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=int(os.environ.get("SEARCHBENCH_CONCURRENCY", "10")),
        help="Number of concurrent workers",
    )
    parser.add_argument(
        "--terms",
        default=os.environ.get("SEARCHBENCH_TERMS"),
        help="File with one search term per line",
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("SEARCHBENCH_OUTPUT_DIR", "results"),
        help="Directory to store the latency chart and run manifest",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planned run without executing it",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("SEARCHBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def load_backend(path: str, address: str, index: str) -> SearchFn:
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"backend must look like 'module:callable', got {path!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory(address, index)


def load_terms(path: Path) -> list[str]:
    with open(path, encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    if not args.backend:
        LOGGER.error("No backend given; pass --backend or set SEARCHBENCH_BACKEND")
        return 2
    if not args.terms:
        LOGGER.error("No terms file given; pass --terms or set SEARCHBENCH_TERMS")
        return 2

    try:
        config = BenchmarkConfig(
            address=args.address,
            index=args.index,
            backend=args.backend,
            mode=args.mode,
            concurrency=args.concurrency,
            output_dir=Path(args.output_dir),
        )
        terms = load_terms(Path(args.terms))
    except (OSError, ValueError) as exc:
        LOGGER.error("Invalid benchmark settings: %s", exc)
        return 2

    if args.dry_run:
        print(f"Run: {config.describe()}")
        print(f"  terms={len(terms)} from {args.terms}")
        return 0

    config.output_dir.mkdir(parents=True, exist_ok=True)
    LOGGER.info("Benchmark output directory: %s", config.output_dir)
    LOGGER.info("Backend: %s (%s)", config.backend, config.address)

    try:
        search = load_backend(config.backend, config.address, config.index)
    except (ImportError, AttributeError, ValueError) as exc:
        LOGGER.error("Unable to load backend %s: %s", config.backend, exc)
        return 2

    try:
        report = run_benchmark(config, search, terms)
    except BenchmarkError:
        LOGGER.exception("benchmark failed")
        return 1

    manifest_path = config.output_dir / MANIFEST_FILENAME
    manifest = {"config": config.describe(), "results": report.to_dict()}
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)
    LOGGER.info("Run manifest written to %s", manifest_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
