"""logging.Handler that feeds stdlib log records into the correlator."""

import logging
import threading

from tagtrack.config import Config
from tagtrack.context import ContextRegistry
from tagtrack.correlator import ActivityCorrelator
from tagtrack.metrics import process_metrics_provider
from tagtrack.models import RawRecord, SourceLocation
from tagtrack.scheduler import MetricsScheduler
from tagtrack.sinks import CountingSink, create_sink
from tagtrack.stats import SinkStats

INTERNAL_LOGGER_PREFIX = "tagtrack"


def to_raw_record(record: logging.LogRecord) -> RawRecord:
    """Convert a stdlib LogRecord into the correlator's raw record."""
    error = record.exc_info[1] if record.exc_info else None
    location = None
    if record.pathname:
        location = SourceLocation(
            file=record.filename,
            method=record.funcName or "",
            line=record.lineno,
        )
    return RawRecord(
        timestamp=int(record.created * 1000),
        level=record.levelname,
        thread=record.threadName or str(record.thread),
        logger_name=record.name,
        message=record.getMessage(),
        error=error,
        location=location,
    )


def _is_internal(name: str) -> bool:
    return name == INTERNAL_LOGGER_PREFIX or name.startswith(INTERNAL_LOGGER_PREFIX + ".")


class TrackingHandler(logging.Handler):
    """Routes each log record through an ActivityCorrelator, one context per thread.

    Contexts are keyed by the thread id and name carried on the LogRecord, so
    records relayed by a QueueListener still land in their producer's context.
    Whenever a new (id, name) pair shows up, contexts of threads that have
    exited are closed and dropped, so the registry does not grow with dead
    threads and a new thread reusing an old id under another name starts
    from a fresh context.
    """

    def __init__(self, correlator: ActivityCorrelator, sink=None,
                 registry: ContextRegistry | None = None, level=logging.NOTSET):
        super().__init__(level)
        self.correlator = correlator
        self.sink = sink
        self.registry = registry or ContextRegistry()

    def emit(self, record: logging.LogRecord) -> None:
        if _is_internal(record.name):
            return
        try:
            key = (record.thread, record.threadName)
            if key not in self.registry:
                self.prune_contexts()
            context = self.registry.get(key, record.threadName or "")
            self.correlator.process(to_raw_record(record), context)
        except Exception:
            self.handleError(record)

    def prune_contexts(self) -> int:
        """Close and drop the contexts of threads that are no longer alive."""
        live = {thread.ident for thread in threading.enumerate()}
        dropped = 0
        for key in self.registry.keys():
            ident = key[0]
            if ident is None or ident in live:
                continue
            context = self.registry.discard(key)
            if context is not None:
                self.correlator.flush(context)
                dropped += 1
        return dropped

    def flush_activities(self) -> int:
        """Close every open activity. Returns the number closed."""
        closed = 0
        for context in self.registry.contexts():
            if self.correlator.flush(context) is not None:
                closed += 1
        return closed

    def close(self) -> None:
        self.acquire()
        try:
            self.flush_activities()
            if self.sink is not None:
                self.sink.close()
        finally:
            self.release()
            super().close()


def create_handler(config: Config, sink=None, stats: SinkStats | None = None,
                   time_func=None) -> TrackingHandler:
    """Wire scheduler, counting sink, correlator and handler from config."""
    stats = stats or SinkStats()
    counting = CountingSink(sink if sink is not None else create_sink(config), stats)
    correlator = ActivityCorrelator(
        config,
        counting,
        scheduler=MetricsScheduler(config.metrics_frequency, config.metrics_on_exception),
        metrics_provider=process_metrics_provider(config.snapshot_category),
        time_func=time_func,
    )
    handler = TrackingHandler(correlator, sink=counting)
    if config.source_name:
        handler.set_name(config.source_name)
    return handler
