"""Decoder for the service's XML responses.

Expected shapes::

    <response><task id="..." status="Queued" .../></response>
    <response><error><message>Invalid password</message></error></response>
    <error><message language="english">Invalid password</message></error>

A task field may be carried as an attribute or as a child element's text; both
are normalized to a stripped string. A field given twice as child elements is
ambiguous and rejected.
"""

from __future__ import annotations

import logging
from typing import Optional
from xml.etree.ElementTree import Element

from defusedxml import DefusedXmlException, ElementTree

from ocrsdk.domain.errors import DecodeError, ServiceError, UnknownResponseError
from ocrsdk.domain.models import TaskRecord, TaskStatus

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = {
    "registration_time": "registrationTime",
    "status_change_time": "statusChangeTime",
    "files_count": "filesCount",
    "credits": "credits",
    "estimated_processing_time": "estimatedProcessingTime",
    "description": "description",
}


def _local(tag: str) -> str:
    # "{namespace}task" -> "task"
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _children(element: Element, name: str) -> list[Element]:
    return [child for child in element if _local(child.tag) == name]


def _text(element: Element) -> Optional[str]:
    value = "".join(element.itertext()).strip()
    return value or None


def _field(element: Element, name: str) -> Optional[str]:
    attr = element.attrib.get(name)
    if attr is not None and attr.strip():
        return attr.strip()
    nodes = _children(element, name)
    if not nodes:
        return None
    if len(nodes) > 1:
        raise DecodeError(f"Field '{name}' appears {len(nodes)} times in <{_local(element.tag)}>")
    return _text(nodes[0])


def _error_message(error: Element) -> str:
    # The service may send one <message> per language; English wins, else the first non-empty one
    messages = [(node.attrib.get("language", "").lower(), _text(node)) for node in _children(error, "message")]
    messages = [(language, text) for language, text in messages if text]
    english = [text for language, text in messages if language == "english"]
    message = english[0] if english else messages[0][1] if messages else _text(error)
    if message is None:
        raise DecodeError("Error response without a message")
    return message


class XmlResponseDecoder:
    """Implements ``DecoderPort`` on top of ``defusedxml``."""

    def decode(self, raw: bytes, *, status_code: int | None = None) -> TaskRecord:
        if not raw or not raw.strip():
            raise DecodeError("Empty response body")
        try:
            root = ElementTree.fromstring(raw)
        except (ElementTree.ParseError, DefusedXmlException) as exc:
            raise DecodeError(f"Malformed XML response: {exc}") from exc

        root_tag = _local(root.tag)
        if root_tag == "error":
            raise ServiceError(_error_message(root), status_code=status_code)
        if root_tag != "response":
            raise UnknownResponseError()

        tasks = _children(root, "task")
        if not tasks:
            errors = _children(root, "error")
            if errors:
                raise ServiceError(_error_message(errors[0]), status_code=status_code)
            raise UnknownResponseError()
        if len(tasks) > 1:
            raise DecodeError(f"Expected one task element, got {len(tasks)}")
        return self.decode_task(tasks[0])

    def decode_task(self, task: Element) -> TaskRecord:
        task_id = _field(task, "id")
        if not task_id:
            raise DecodeError("Task element has no id")
        raw_status = _field(task, "status")
        if not raw_status:
            raise DecodeError(f"Task {task_id} has no status")
        status = TaskStatus.parse(raw_status)
        if status is TaskStatus.UNKNOWN:
            logger.warning("unrecognized_task_status", extra={"task_id": task_id, "status": raw_status})

        result_url = _field(task, "resultUrl")
        if status is TaskStatus.COMPLETED and not result_url:
            raise DecodeError(f"Completed task {task_id} has no resultUrl")

        error_message = None
        if status is TaskStatus.PROCESSING_FAILED:
            error_message = _field(task, "error") or _field(task, "errorMessage")

        optional = {attr: _field(task, name) for attr, name in _OPTIONAL_FIELDS.items()}
        return TaskRecord(
            id=task_id,
            status=status,
            raw_status=raw_status,
            result_url=result_url if status is TaskStatus.COMPLETED else None,
            error_message=error_message,
            **optional,
        )
