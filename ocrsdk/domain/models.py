"""Domain models for recognition tasks."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    QUEUED = "Queued"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    PROCESSING_FAILED = "ProcessingFailed"
    DELETED = "Deleted"
    NOT_ENOUGH_CREDITS = "NotEnoughCredits"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: str) -> "TaskStatus":
        for member in cls:
            if member.value.lower() == raw.strip().lower():
                return member
        return cls.UNKNOWN

    @property
    def is_active(self) -> bool:
        return self in (TaskStatus.QUEUED, TaskStatus.IN_PROGRESS)


class ProcessingVariant(str, Enum):
    """Processing verbs exposed by the service as ``/process{Variant}``."""

    IMAGE = "Image"
    DOCUMENT = "Document"
    BUSINESS_CARD = "BusinessCard"
    TEXT_FIELD = "TextField"
    FIELDS = "Fields"
    MRZ = "MRZ"
    RECEIPT = "Receipt"
    CHECKMARK_FIELD = "CheckmarkField"
    BARCODE_FIELD = "BarcodeField"

    @classmethod
    def parse(cls, raw: "str | ProcessingVariant") -> "ProcessingVariant":
        if isinstance(raw, ProcessingVariant):
            return raw
        for member in cls:
            if member.value.lower() == raw.strip().lower() or member.name.lower() == raw.strip().lower():
                return member
        raise ValueError(f"Unknown processing variant: {raw}")

    @property
    def path(self) -> str:
        return f"/process{self.value}"


class TaskRecord(BaseModel):
    """Immutable snapshot of one remote recognition job.

    A new snapshot replaces the previous one on every status response.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    status: TaskStatus
    raw_status: str
    result_url: Optional[str] = None
    error_message: Optional[str] = None
    registration_time: Optional[str] = None
    status_change_time: Optional[str] = None
    files_count: Optional[str] = None
    credits: Optional[str] = None
    estimated_processing_time: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return not self.status.is_active


class ProcessingRequest(BaseModel):
    """Caller-supplied input of one ``process`` call."""

    model_config = ConfigDict(frozen=True)

    file_path: Path
    variant: ProcessingVariant = ProcessingVariant.IMAGE
    params: dict[str, str] = Field(default_factory=dict)

    @field_validator("variant", mode="before")
    @classmethod
    def _coerce_variant(cls, value):
        if value is None:
            return ProcessingVariant.IMAGE
        return ProcessingVariant.parse(value)


class TaskResult(BaseModel):
    """Outcome of a successful ``process`` call."""

    model_config = ConfigDict(frozen=True)

    task: TaskRecord
    artifact: bytes
    content_type: Optional[str] = None
    output_path: Optional[Path] = None
    polls: int = 0
    warnings: list[str] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return self.artifact.decode("utf-8", errors="replace")
