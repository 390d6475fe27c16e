from __future__ import annotations

from prometheus_client import Counter, Histogram

tasks_submitted_total = Counter("ocrsdk_tasks_submitted_total", "Recognition tasks submitted")
tasks_completed_total = Counter("ocrsdk_tasks_completed_total", "Tasks whose result was downloaded")
tasks_failed_total = Counter(
    "ocrsdk_tasks_failed_total",
    "Process calls that ended in an error",
    labelnames=("error_code",),
)
status_polls_total = Counter("ocrsdk_status_polls_total", "getTaskStatus requests issued")
archive_failures_total = Counter("ocrsdk_archive_failures_total", "Best-effort archival uploads that failed")
process_duration_seconds = Histogram(
    "ocrsdk_process_duration_seconds",
    "End-to-end process() duration in seconds",
    buckets=(1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)


def inc_task_submitted() -> None:
    tasks_submitted_total.inc()


def inc_task_completed() -> None:
    tasks_completed_total.inc()


def inc_task_failed(error_code: str) -> None:
    tasks_failed_total.labels(error_code=error_code).inc()


def inc_status_poll() -> None:
    status_polls_total.inc()


def inc_archive_failure() -> None:
    archive_failures_total.inc()


def record_process_duration(seconds: float) -> None:
    process_duration_seconds.observe(seconds)
