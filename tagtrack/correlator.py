"""Activity correlation: groups events into activities per context.

A context is either NOOP (no open activity) or OPEN. '#beg' opens an
activity, '#end' closes it, and every other record becomes an Event that
is either appended to the open activity or emitted on its own. While NOOP,
the metrics scheduler may promote a single event into a one-event activity
carrying process metrics.
"""

import logging
import time
from typing import Callable

from tagtrack.builder import EventBuilder
from tagtrack.config import Config
from tagtrack.context import CorrelationContext
from tagtrack.errors import ActivityAlreadyOpenError, NoOpenActivityError
from tagtrack.models import Activity, Event, RawRecord, Snapshot
from tagtrack.scheduler import MetricsScheduler
from tagtrack.severity import map_level
from tagtrack.tags import BEGIN_KEY, END_KEY, ParsedMessage, is_activity_instruction, parse_message

logger = logging.getLogger(__name__)

MetricsProvider = Callable[[], list[Snapshot]]


class ActivityCorrelator:
    def __init__(self, config: Config, sink, scheduler: MetricsScheduler | None = None,
                 builder: EventBuilder | None = None,
                 metrics_provider: MetricsProvider | None = None,
                 time_func=None):
        self._config = config
        self._sink = sink
        self._scheduler = scheduler or MetricsScheduler(
            config.metrics_frequency, config.metrics_on_exception,
        )
        self._builder = builder or EventBuilder(config)
        self._metrics_provider = metrics_provider
        self._time_func = time_func or time.time

    @property
    def scheduler(self) -> MetricsScheduler:
        return self._scheduler

    def process(self, record: RawRecord, context: CorrelationContext) -> Event | Activity | None:
        """Correlate one record. Returns the item handed to the sink, if any."""
        parsed = parse_message(record.message, self._config.delimiter)
        if is_activity_instruction(parsed.attrs):
            return self._process_control(record, parsed, context)

        event = self._builder.build(record, parsed, context)
        activity = context.activity

        if activity is not None:
            activity.add(event)
            if activity.item_count >= self._config.max_activity_size:
                logger.debug("Activity %s reached %d items, closing",
                             activity.name, activity.item_count)
                return self._close(context, record.error, event.end_us)
            return None

        if self._scheduler.should_snapshot(record.error is not None, self._time_func()):
            return self._emit(self._wrap(record, event))

        return self._emit(event)

    def flush(self, context: CorrelationContext) -> Activity | None:
        """Close and emit the context's open activity, if any."""
        if context.activity is None:
            return None
        end_us = max(context.activity.start_us, int(self._time_func() * 1_000_000))
        return self._close(context, None, end_us)

    def _process_control(self, record: RawRecord, parsed: ParsedMessage,
                         context: CorrelationContext) -> Activity | None:
        attrs = parsed.attrs
        record_us = record.timestamp * 1000
        context.timer.hit()

        if BEGIN_KEY in attrs:
            if context.activity is not None:
                raise ActivityAlreadyOpenError(
                    f"activity {context.activity.name!r} is already open in context {context.name!r}"
                )
            severity, _ = map_level(record.level)
            activity = Activity(
                name=attrs[BEGIN_KEY] or record.thread,
                severity=severity,
                resource=record.logger_name,
                source=attrs.get("app") or record.logger_name,
            )
            activity.start(record_us)
            context.activity = activity
            logger.debug("Activity %s started in context %s", activity.name, context.name)

        if END_KEY in attrs:
            if context.activity is None:
                raise NoOpenActivityError(f"no open activity in context {context.name!r}")
            return self._close(context, record.error, record_us)

        return None

    def _wrap(self, record: RawRecord, event: Event) -> Activity:
        activity = Activity(
            name=record.thread,
            severity=event.severity,
            resource=record.logger_name,
            source=event.source,
        )
        activity.start(event.start_us)
        activity.add(event)
        if self._metrics_provider is not None:
            activity.snapshots.extend(self._metrics_provider())
        activity.stop(event.end_us, record.error)
        return activity

    def _close(self, context: CorrelationContext, error: BaseException | None,
               end_us: int) -> Activity:
        activity = context.activity
        activity.stop(end_us, error)
        context.activity = None
        return self._emit(activity)

    def _emit(self, item):
        self._sink.emit(item)
        return item
