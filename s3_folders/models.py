from __future__ import annotations
"""Data models shared by the listing, transfer and orchestration layers."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectRecord:
    """A single object returned by a prefix listing."""

    key: str
    size: int = 0
    uploaded_at: Optional[datetime] = None


@dataclass
class ListingPage:
    """One page of a paginated prefix listing."""

    objects: list[ObjectRecord] = field(default_factory=list)
    cursor: Optional[str] = None
    is_truncated: bool = False

    @property
    def has_more(self) -> bool:
        return self.is_truncated and bool(self.cursor)

    @property
    def keys(self) -> list[str]:
        return [record.key for record in self.objects]


@dataclass(frozen=True)
class OperationContext:
    """Buckets, prefixes and flags for a single folder operation."""

    source_bucket: str
    source_prefix: str
    destination_bucket: str = ""
    destination_prefix: str = ""
    force: bool = False
    user: str = ""

    def __post_init__(self) -> None:
        # Frozen dataclass: fill the defaults through object.__setattr__.
        if not self.destination_bucket:
            object.__setattr__(self, "destination_bucket", self.source_bucket)
        if not self.destination_prefix:
            object.__setattr__(self, "destination_prefix", self.source_prefix)

    @property
    def same_bucket(self) -> bool:
        return self.source_bucket == self.destination_bucket


@dataclass
class CreateOutcome:
    """Result of creating a folder placeholder."""

    folder_path: str

    def as_response(self) -> dict[str, object]:
        return {"success": True, "folderPath": self.folder_path}


_SUCCESS_FIELDS = {
    "rename": "copied",
    "copy": "copied",
    "move": "moved",
}


@dataclass
class TransferOutcome:
    """Counters collected while transferring (and optionally finalizing) a folder."""

    operation: str
    succeeded: int = 0
    failed: int = 0
    deleted: int = 0
    delete_failed: int = 0
    skipped: int = 0
    complete: bool = True
    failed_keys: list[str] = field(default_factory=list)

    @property
    def success_field(self) -> str:
        return _SUCCESS_FIELDS.get(self.operation, "succeeded")

    def as_response(self) -> dict[str, object]:
        body: dict[str, object] = {
            "success": True,
            self.success_field: self.succeeded,
            "failed": self.failed,
        }
        if self.operation in ("rename", "move"):
            body["deleted"] = self.deleted
            if self.skipped:
                body["skipped"] = self.skipped
        if not self.complete:
            body["complete"] = False
        return body


@dataclass
class DeleteOutcome:
    """Result of a folder delete, or of a delete that still needs confirmation."""

    deleted: int = 0
    failed: int = 0
    file_count: int = 0
    confirmed: bool = True

    def as_response(self) -> dict[str, object]:
        if not self.confirmed:
            return {
                "success": False,
                "fileCount": self.file_count,
                "message": "Folder contains files. Use force=true to delete.",
            }
        body: dict[str, object] = {"success": True, "deleted": self.deleted}
        if self.failed:
            body["failed"] = self.failed
        return body
