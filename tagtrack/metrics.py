"""Default process metrics attached to metrics-bearing activities, via psutil."""

import psutil

from tagtrack.models import Property, PropertyType, Snapshot

PROCESS_OWNER = "process"


def process_snapshot(category: str, process: psutil.Process | None = None) -> Snapshot:
    """Collect a point-in-time snapshot of CPU and memory for this process.

    cpu_percent values are measured since the previous call on the same
    Process object, so the first snapshot of a fresh Process reports 0.0.
    """
    process = process or psutil.Process()
    with process.oneshot():
        times = process.cpu_times()
        mem = process.memory_info()
        props = [
            Property("pid", process.pid, PropertyType.INTEGER),
            Property("threads", process.num_threads(), PropertyType.INTEGER),
            Property("cpu_user_sec", round(times.user, 3), PropertyType.DOUBLE, "age.sec"),
            Property("cpu_system_sec", round(times.system, 3), PropertyType.DOUBLE, "age.sec"),
            Property("cpu_percent", process.cpu_percent(interval=None), PropertyType.DOUBLE,
                     "percent"),
            Property("memory_rss", mem.rss, PropertyType.LONG, "bytes"),
            Property("memory_vms", mem.vms, PropertyType.LONG, "bytes"),
        ]
    props.append(Property("system_cpu_percent", psutil.cpu_percent(interval=None),
                          PropertyType.DOUBLE, "percent"))
    props.append(Property("system_memory_percent", psutil.virtual_memory().percent,
                          PropertyType.DOUBLE, "percent"))
    return Snapshot(category=category, owner=PROCESS_OWNER, properties=tuple(props))


def process_metrics_provider(category: str):
    """Return a zero-argument callable producing the process snapshot list."""
    process = psutil.Process()
    # Prime the CPU counters so later snapshots report usage since this point
    process.cpu_percent(interval=None)
    psutil.cpu_percent(interval=None)

    def provide() -> list[Snapshot]:
        return [process_snapshot(category, process)]
    return provide
