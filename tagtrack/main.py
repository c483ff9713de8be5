#!/usr/bin/env python3
"""tagtrack: replay or follow annotated log files as tracking events and activities."""

import argparse
import json
import logging
import sys
import threading
import time

from watchdog.observers import Observer

from tagtrack.config import load_config, load_yaml_config
from tagtrack.context import ContextRegistry, RecordClock
from tagtrack.correlator import ActivityCorrelator
from tagtrack.dashboard import create_dashboard_app, run_dashboard
from tagtrack.errors import CorrelationError
from tagtrack.follower import LineFollower
from tagtrack.lines import parse_line, read_records
from tagtrack.metrics import process_metrics_provider
from tagtrack.models import RawRecord
from tagtrack.sinks import CountingSink, create_sink
from tagtrack.stats import SinkStats

logger = logging.getLogger("tagtrack.main")


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagtrack",
        description="Turn #tag-annotated log files into tracking events and activities.",
    )
    parser.add_argument("files", nargs="+", help="Log file(s) to replay")
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--follow", action="store_true",
        help="Keep following the (single) file for new lines",
    )
    parser.add_argument(
        "--dashboard-port", type=int, default=0,
        help="Serve the stats dashboard on this port (default: off)",
    )
    return parser


class Replayer:
    """Feeds raw records through a correlator, one context per thread column.

    Elapsed times are measured between record timestamps, not by how fast
    the file is read. Give the correlator `clock.seconds` as its time_func so
    metrics snapshots and flushes follow the same timeline.
    """

    def __init__(self, correlator: ActivityCorrelator, registry: ContextRegistry | None = None,
                 clock: RecordClock | None = None):
        self.correlator = correlator
        self.clock = clock or RecordClock()
        self.registry = registry or ContextRegistry(self.clock.ns)
        self.processed = 0
        self.rejected = 0

    def feed(self, record: RawRecord):
        self.clock.update(record.timestamp)
        context = self.registry.get(record.thread)
        try:
            self.correlator.process(record, context)
            self.processed += 1
        except CorrelationError as exc:
            self.rejected += 1
            logger.warning("Rejected record from %s: %s", record.logger_name, exc)

    def feed_line(self, line: str, source: str = ""):
        record = parse_line(line, source=source)
        if record is not None:
            self.feed(record)

    def flush(self) -> int:
        closed = 0
        for context in self.registry.contexts():
            if self.correlator.flush(context) is not None:
                closed += 1
        return closed


def _follow(replayer: Replayer, path: str, stop: threading.Event):
    follower = LineFollower(path, lambda line: replayer.feed_line(line, source=path))
    follower.open()
    observer = Observer()
    observer.schedule(follower, follower.watch_dir, recursive=False)
    observer.start()
    logger.info("Following %s. Press Ctrl+C to stop.", path)
    try:
        while not stop.is_set():
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        observer.stop()
        observer.join(timeout=5)
        follower.close()


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )

    args = build_cli_parser().parse_args(argv)
    if args.follow and len(args.files) > 1:
        print("Error: --follow requires a single file", file=sys.stderr)
        return 1

    config = load_config(load_yaml_config(args.config))
    stats = SinkStats()
    sink = CountingSink(create_sink(config), stats)
    clock = RecordClock()
    correlator = ActivityCorrelator(
        config, sink, metrics_provider=process_metrics_provider(config.snapshot_category),
        time_func=clock.seconds,
    )
    replayer = Replayer(correlator, clock=clock)

    if args.dashboard_port:
        app = create_dashboard_app(stats, correlator.scheduler)
        threading.Thread(target=run_dashboard, args=(app, args.dashboard_port),
                         daemon=True).start()
        logger.info("Dashboard running on port %d", args.dashboard_port)

    try:
        for record in read_records(args.files):
            replayer.feed(record)
        if args.follow:
            _follow(replayer, args.files[0], threading.Event())
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        closed = replayer.flush()
        sink.close()
        logger.info("Processed %d records (%d rejected), closed %d open activities",
                    replayer.processed, replayer.rejected, closed)

    print(json.dumps(stats.snapshot(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
