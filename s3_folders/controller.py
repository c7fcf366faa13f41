from __future__ import annotations
"""Request boundary between callers and the folder orchestrator."""

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Optional

from .collaborators import (
    AuditSink,
    JsonLinesAuditSink,
    LoggingAuditSink,
    LoggingWebhookNotifier,
    WebhookNotifier,
)
from .errors import RemoteError, ValidationError
from .models import CreateOutcome, DeleteOutcome, TransferOutcome
from .orchestrator import FolderOperationOrchestrator
from .pacing import FixedIntervalPacing, PacingPolicy
from .paths import validate_folder_path
from .profiles import ConnectionProfile, ProfileStorage
from .services import DEFAULT_REGION, ObjectStoreService
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)

OPERATIONS = ("create", "rename", "copy", "move", "delete")

_FAILURE_MESSAGES = {
    "create": "Failed to create folder",
    "rename": "Failed to rename folder",
    "copy": "Failed to copy folder",
    "move": "Failed to move folder",
    "delete": "Failed to delete folder",
}


class NotConnectedError(RuntimeError):
    """Raised when a folder operation is attempted before connecting."""


@dataclass
class FolderRequest:
    """A caller's folder operation, before validation."""

    operation: str
    bucket: str
    folder_name: Optional[str] = None
    old_path: Optional[str] = None
    new_path: Optional[str] = None
    folder_path: Optional[str] = None
    destination_bucket: Optional[str] = None
    destination_path: Optional[str] = None
    force: bool = False

    @classmethod
    def from_payload(
        cls,
        operation: str,
        bucket: str,
        payload: dict[str, Any] | None = None,
        *,
        folder_path: str | None = None,
        force: bool = False,
    ) -> "FolderRequest":
        """Build a request from a JSON body using the wire field names."""

        payload = payload or {}
        return cls(
            operation=operation,
            bucket=bucket,
            folder_name=payload.get("folderName"),
            old_path=payload.get("oldPath"),
            new_path=payload.get("newPath"),
            folder_path=folder_path,
            destination_bucket=payload.get("destinationBucket"),
            destination_path=payload.get("destinationPath"),
            force=force,
        )


@dataclass
class FolderResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class FolderController:
    """Validates requests, manages the connection and runs folder operations."""

    def __init__(
        self,
        service: ObjectStoreService | None = None,
        storage: ProfileStorage | None = None,
        *,
        settings: AppSettings | None = None,
        audit_sink: AuditSink | None = None,
        webhooks: WebhookNotifier | None = None,
        pacing: PacingPolicy | None = None,
        user: str = "",
    ):
        self._service = service or ObjectStoreService()
        self._storage = storage or ProfileStorage()
        self._settings = settings or AppSettings()
        self._audit_sink = audit_sink or self._default_audit_sink(self._settings)
        self._webhooks = webhooks or LoggingWebhookNotifier()
        self._pacing = pacing or FixedIntervalPacing(self._settings.page_delay)
        self._user = user
        self._connection_params: dict[str, str] | None = None
        self._profiles: list[ConnectionProfile] = self._storage.load()
        self._selected_profile: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection_params is not None

    @property
    def selected_profile(self) -> str | None:
        return self._selected_profile

    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._profiles)

    def save_profile(self, profile: ConnectionProfile) -> None:
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)
        self._storage.save(self._profiles)

    def delete_profile(self, name: str) -> None:
        remaining = [p for p in self._profiles if p.name != name]
        if len(remaining) == len(self._profiles):
            raise ValueError(f"Profile '{name}' does not exist")
        self._profiles = remaining
        if self._selected_profile == name:
            self._selected_profile = None
        self._storage.save(self._profiles)

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def connect_with_profile(self, name: str) -> list[str]:
        profile = self.get_profile(name)
        buckets = self.connect(**profile.connection_params())
        self._selected_profile = name
        return buckets

    def connect(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region_name: str = DEFAULT_REGION,
    ) -> list[str]:
        """Verify the credentials by listing buckets and remember them."""

        connection_params = {
            "endpoint_url": endpoint_url,
            "access_key": access_key,
            "secret_key": secret_key,
            "region_name": region_name,
        }
        buckets = self._service.list_buckets(**connection_params)
        self._connection_params = connection_params
        return buckets

    def create_folder(self, *, bucket_name: str, folder_name: str | None) -> CreateOutcome:
        bucket_name = self._require_bucket(bucket_name)
        folder_name = validate_folder_path(folder_name)
        return self._orchestrator().create(bucket_name, folder_name, user=self._user)

    def rename_folder(self, *, bucket_name: str, old_path: str | None, new_path: str | None) -> TransferOutcome:
        bucket_name = self._require_bucket(bucket_name)
        if not (old_path or "").strip() or not (new_path or "").strip():
            raise ValidationError("Both old and new paths are required")
        old_path = validate_folder_path(old_path, label="Old path")
        new_path = validate_folder_path(new_path, label="New path")
        return self._orchestrator().rename(bucket_name, old_path, new_path, user=self._user)

    def copy_folder(
        self,
        *,
        bucket_name: str,
        folder_path: str | None,
        destination_bucket: str | None,
        destination_path: str | None = None,
    ) -> TransferOutcome:
        args = self._transfer_args(bucket_name, folder_path, destination_bucket, destination_path)
        return self._orchestrator().copy(*args, user=self._user)

    def move_folder(
        self,
        *,
        bucket_name: str,
        folder_path: str | None,
        destination_bucket: str | None,
        destination_path: str | None = None,
    ) -> TransferOutcome:
        args = self._transfer_args(bucket_name, folder_path, destination_bucket, destination_path)
        return self._orchestrator().move(*args, user=self._user)

    def delete_folder(self, *, bucket_name: str, folder_path: str | None, force: bool = False) -> DeleteOutcome:
        bucket_name = self._require_bucket(bucket_name)
        folder_path = validate_folder_path(folder_path, label="Folder path")
        return self._orchestrator().delete(bucket_name, folder_path, force=force, user=self._user)

    def handle(self, request: FolderRequest) -> FolderResponse:
        """Run ``request`` and answer with a status code and a JSON-ready body.

        Validation problems answer 400, remote failures 500. Per-object failures
        are reported inside a 200 body.
        """

        handlers: dict[str, Callable[[], Any]] = {
            "create": lambda: self.create_folder(
                bucket_name=request.bucket, folder_name=request.folder_name
            ),
            "rename": lambda: self.rename_folder(
                bucket_name=request.bucket, old_path=request.old_path, new_path=request.new_path
            ),
            "copy": lambda: self.copy_folder(
                bucket_name=request.bucket,
                folder_path=request.folder_path,
                destination_bucket=request.destination_bucket,
                destination_path=request.destination_path,
            ),
            "move": lambda: self.move_folder(
                bucket_name=request.bucket,
                folder_path=request.folder_path,
                destination_bucket=request.destination_bucket,
                destination_path=request.destination_path,
            ),
            "delete": lambda: self.delete_folder(
                bucket_name=request.bucket, folder_path=request.folder_path, force=request.force
            ),
        }
        handler = handlers.get(request.operation)
        if handler is None:
            return FolderResponse(404, {"error": "Not Found"})
        try:
            outcome = handler()
        except ValidationError as exc:
            return FolderResponse(400, {"error": str(exc)})
        except NotConnectedError as exc:
            return FolderResponse(400, {"error": str(exc)})
        except RemoteError as exc:
            LOGGER.error("Folder %s failed: %s", request.operation, exc)
            return FolderResponse(500, {"error": _FAILURE_MESSAGES[request.operation], "detail": str(exc)})
        return FolderResponse(200, outcome.as_response())

    def _transfer_args(
        self,
        bucket_name: str,
        folder_path: str | None,
        destination_bucket: str | None,
        destination_path: str | None,
    ) -> tuple[str, str, str, str | None]:
        bucket_name = self._require_bucket(bucket_name)
        folder_path = validate_folder_path(folder_path, label="Folder path")
        if not (destination_bucket or "").strip():
            raise ValidationError("Destination bucket is required")
        if destination_path is not None and destination_path.strip():
            destination_path = validate_folder_path(destination_path, label="Destination path")
        else:
            destination_path = None
        return bucket_name, folder_path, destination_bucket.strip(), destination_path

    def _orchestrator(self) -> FolderOperationOrchestrator:
        params = self._require_connection()
        store = self._service.open_store(**params)
        return FolderOperationOrchestrator(
            store,
            pacing=self._pacing,
            audit_sink=self._audit_sink,
            webhooks=self._webhooks,
            page_size=self._settings.page_size,
            strict=self._settings.strict_finalize,
        )

    def _require_connection(self) -> dict[str, str]:
        if not self._connection_params:
            raise NotConnectedError("Not connected to the object store")
        return self._connection_params

    @staticmethod
    def _require_bucket(bucket_name: str | None) -> str:
        value = (bucket_name or "").strip()
        if not value:
            raise ValidationError("Bucket name is required")
        return value

    @staticmethod
    def _default_audit_sink(settings: AppSettings) -> AuditSink:
        if settings.audit_log_path:
            return JsonLinesAuditSink(settings.audit_log_path)
        return LoggingAuditSink()
