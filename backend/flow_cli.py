"""CLI entrypoint: run a flow document headlessly and save the results."""

import argparse
import json
import logging
from pathlib import Path
from typing import List

from config import HTTP_TIMEOUT_SECONDS
from flow_runner import FlowRunner
from graph_engine.document import to_document
from graph_engine.errors import CycleDetected, FlowError
from persistence import PersistenceAdapter
from utils.async_helpers import shutdown_thread_pools
from utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CYCLE = 1
EXIT_INVALID = 2


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Execute a flow document in dependency order.")
    parser.add_argument("document", help="Path to a flow.json document.")
    parser.add_argument(
        "--output",
        default="",
        help="Where to write the updated document (defaults to overwriting the input).",
    )
    parser.add_argument(
        "--concurrent",
        action="store_true",
        help="Run independent branches of each dependency wave in parallel.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=HTTP_TIMEOUT_SECONDS,
        help="Timeout in seconds for HTTP nodes.",
    )
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    setup_logging()
    args = parse_args(argv)
    input_path = Path(args.document)

    try:
        graph = PersistenceAdapter.import_file(input_path)
    except (OSError, FlowError) as e:
        print(f"Invalid flow document: {e}")
        return EXIT_INVALID

    runner = FlowRunner(http_timeout=args.timeout, concurrent=args.concurrent)
    try:
        runner.run_sync(graph)
    except CycleDetected as e:
        print(str(e))
        return EXIT_CYCLE
    finally:
        shutdown_thread_pools()

    output_path = Path(args.output) if args.output else input_path
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(to_document(graph), ensure_ascii=False, indent=2), encoding="utf-8")

    report = runner.last_report
    print(f"Flow executed, results saved to: {output_path.resolve()}")
    print(
        "Counts:",
        f"executed={len(report.executed)}",
        f"failed={len(report.failed)}",
    )
    for node_id, message in report.failed.items():
        print(f"  node {node_id}: {message}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
