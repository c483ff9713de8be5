"""Event sinks: where finished events and activities are handed off."""

import json
import logging
import os
import threading
from typing import Protocol

from tagtrack.config import Config
from tagtrack.models import Activity, Event, SourceType, item_to_dict
from tagtrack.severity import to_logging_level
from tagtrack.stats import SinkStats

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_NAME = "tagtrack"


class EventSink(Protocol):
    def emit(self, item: Event | Activity) -> None: ...

    def close(self) -> None: ...


class MemorySink:
    """Keeps emitted items in memory."""

    def __init__(self):
        self._items: list[Event | Activity] = []
        self._lock = threading.Lock()

    def emit(self, item: Event | Activity) -> None:
        with self._lock:
            self._items.append(item)

    @property
    def items(self) -> list[Event | Activity]:
        with self._lock:
            return list(self._items)

    @property
    def events(self) -> list[Event]:
        return [i for i in self.items if isinstance(i, Event)]

    @property
    def activities(self) -> list[Activity]:
        return [i for i in self.items if isinstance(i, Activity)]

    def close(self) -> None:
        pass


class JsonLinesSink:
    """Appends one JSON object per item to a file."""

    def __init__(self, path: str, source_name: str = DEFAULT_SOURCE_NAME,
                 source_type: SourceType = SourceType.APPL):
        self._path = path
        self._origin = {"name": source_name, "type": source_type.value}
        self._lock = threading.Lock()
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self._file = open(path, "a", encoding="utf-8")
        self.bytes_written = 0

    def emit(self, item: Event | Activity) -> None:
        data = item_to_dict(item)
        data["origin"] = self._origin
        line = json.dumps(data) + "\n"
        with self._lock:
            self._file.write(line)
            self._file.flush()
            self.bytes_written += len(line)

    def close(self) -> None:
        with self._lock:
            if not self._file.closed:
                self._file.close()


def format_item(item: Event | Activity) -> str:
    """One-line summary of an item for text logs."""
    if isinstance(item, Activity):
        return (f"activity={item.name} status={item.status.value} items={item.item_count} "
                f"elapsed_us={item.elapsed_us} source={item.source} id={item.id}")
    text = (f"event={item.name} ccd={item.comp_code.name} rcd={item.reason_code} "
            f"rsn={item.resource} elapsed_us={item.elapsed_us}")
    if item.message:
        text += f" msg='{item.message}'"
    return text


class LoggerSink:
    """Writes item summaries to a stdlib logger at the item's severity."""

    def __init__(self, name: str = f"{DEFAULT_SOURCE_NAME}.sink"):
        self._logger = logging.getLogger(name)

    def emit(self, item: Event | Activity) -> None:
        level = to_logging_level(item.severity)
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, format_item(item), exc_info=item.error)

    def close(self) -> None:
        pass


class CountingSink:
    """Forwards each item, then records it in SinkStats once delivered."""

    def __init__(self, inner, stats: SinkStats):
        self._inner = inner
        self.stats = stats

    @property
    def inner(self):
        return self._inner

    def emit(self, item: Event | Activity) -> None:
        self._inner.emit(item)
        self.stats.record(item)

    def close(self) -> None:
        self._inner.close()


def create_sink(config: Config):
    """Build the sink named by config.sink."""
    source_name = config.source_name or DEFAULT_SOURCE_NAME
    if config.sink == "jsonl":
        logger.info("Writing tracking output to %s", config.output_file)
        return JsonLinesSink(config.output_file, source_name, config.source_type)
    if config.sink == "logger":
        return LoggerSink(f"{DEFAULT_SOURCE_NAME}.sink.{source_name}")
    return MemorySink()
