"""Pure decisions of the submit -> poll -> download state machine.

No I/O here; the orchestrator drives the loop and asks ``next_action`` what to
do with each status snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ocrsdk.domain.errors import (
    DeletedTaskError,
    NotEnoughCreditsError,
    ProcessingFailedError,
    TaskFailedError,
    UnexpectedStatusError,
)
from ocrsdk.domain.models import TaskRecord, TaskStatus


class TaskPhase(str, Enum):
    SUBMITTING = "submitting"
    POLLING = "polling"
    DOWNLOADING = "downloading"
    DONE = "done"
    FAILED = "failed"


class ActionKind(str, Enum):
    POLL = "poll"
    DOWNLOAD = "download"
    FAIL = "fail"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    error: Optional[TaskFailedError] = None

    @property
    def phase(self) -> TaskPhase:
        return _PHASE_BY_ACTION[self.kind]


_PHASE_BY_ACTION = {
    ActionKind.POLL: TaskPhase.POLLING,
    ActionKind.DOWNLOAD: TaskPhase.DOWNLOADING,
    ActionKind.FAIL: TaskPhase.FAILED,
}


def is_sentinel_id(task_id: str) -> bool:
    """True for the all-zero GUID, e.g. ``00000000-0000-0000-0000-000000000000``."""
    digits = task_id.strip().strip("{}").replace("-", "")
    return bool(digits) and set(digits) == {"0"}


def failure_for(task: TaskRecord) -> TaskFailedError:
    if task.status is TaskStatus.PROCESSING_FAILED:
        return ProcessingFailedError(task.id, task.error_message)
    if task.status is TaskStatus.NOT_ENOUGH_CREDITS:
        return NotEnoughCreditsError(task.id)
    if task.status is TaskStatus.DELETED:
        return DeletedTaskError(task.id)
    return UnexpectedStatusError(task.id, task.raw_status)


def next_action(task: TaskRecord) -> Action:
    if task.status.is_active:
        return Action(ActionKind.POLL)
    if task.status is TaskStatus.COMPLETED:
        return Action(ActionKind.DOWNLOAD)
    return Action(ActionKind.FAIL, failure_for(task))
