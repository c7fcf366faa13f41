from __future__ import annotations
"""Audit and webhook collaborators notified after folder operations."""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Optional

LOGGER = logging.getLogger(__name__)

FOLDER_CREATE = "folder_create"
FOLDER_RENAME = "folder_rename"
FOLDER_COPY = "folder_copy"
FOLDER_MOVE = "folder_move"
FOLDER_DELETE = "folder_delete"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditSink(ABC):
    """Receives one record per completed or failed folder operation."""

    @abstractmethod
    def record(
        self,
        operation_type: str,
        bucket: str,
        key: Optional[str] = None,
        user: str = "",
        status: str = "success",
        destination_bucket: Optional[str] = None,
        destination_key: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Persists a single audit entry.

        :param operation_type: e.g. ``folder_move``.
        :param bucket: The source bucket.
        :param key: The source folder path, when known.
        :param user: Identity of the caller.
        :param status: ``success`` or ``failed``.
        :param metadata: Operation specific details such as counters or the error.
        """


class WebhookNotifier(ABC):
    """Dispatches an event to whatever webhooks are subscribed to it."""

    @abstractmethod
    def trigger(self, event_type: str, payload: dict[str, Any]) -> None:
        pass


class NullAuditSink(AuditSink):
    def record(self, operation_type, bucket, key=None, user="", status="success",
               destination_bucket=None, destination_key=None, metadata=None) -> None:
        return None


class LoggingAuditSink(AuditSink):
    """Writes audit entries to the application log."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or LOGGER

    def record(self, operation_type, bucket, key=None, user="", status="success",
               destination_bucket=None, destination_key=None, metadata=None) -> None:
        self._logger.info(
            "audit %s %s bucket=%s key=%s dest=%s/%s user=%s metadata=%s",
            operation_type,
            status,
            bucket,
            key,
            destination_bucket,
            destination_key,
            user,
            json.dumps(metadata or {}, sort_keys=True),
        )


class JsonLinesAuditSink(AuditSink):
    """Appends each audit entry as one JSON object per line."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def record(self, operation_type, bucket, key=None, user="", status="success",
               destination_bucket=None, destination_key=None, metadata=None) -> None:
        entry = {
            "timestamp": _timestamp(),
            "operation_type": operation_type,
            "bucket_name": bucket,
            "object_key": key,
            "user_email": user,
            "status": status,
            "destination_bucket": destination_bucket,
            "destination_key": destination_key,
            "metadata": metadata,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry) + "\n")

    def read_entries(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []
        entries = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return entries


class NullWebhookNotifier(WebhookNotifier):
    def trigger(self, event_type: str, payload: dict[str, Any]) -> None:
        return None


class LoggingWebhookNotifier(WebhookNotifier):
    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or LOGGER

    def trigger(self, event_type: str, payload: dict[str, Any]) -> None:
        self._logger.info("webhook %s %s", event_type, json.dumps(payload, sort_keys=True))


def build_folder_payload(
    event_type: str,
    bucket: str,
    folder_path: str,
    user: str,
    **extra: Any,
) -> dict[str, Any]:
    """Return the webhook payload for a folder event."""

    payload: dict[str, Any] = {
        "event": event_type,
        "timestamp": _timestamp(),
        "bucket_name": bucket,
        "folder_path": folder_path,
        "user_email": user,
    }
    payload.update(extra)
    return payload
