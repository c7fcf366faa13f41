from __future__ import annotations
"""Create, rename, copy, move and delete for prefix-emulated folders."""
import logging
from typing import Any, Optional

from .accumulator import FailureAccumulator
from .collaborators import (
    FOLDER_COPY,
    FOLDER_CREATE,
    FOLDER_DELETE,
    FOLDER_MOVE,
    FOLDER_RENAME,
    AuditSink,
    NullAuditSink,
    NullWebhookNotifier,
    WebhookNotifier,
    build_folder_payload,
)
from .errors import (
    RemoteDeleteError,
    RemoteError,
    RemoteListError,
    SubsequentListError,
    ValidationError,
)
from .listing import MAX_PAGE_SIZE, PrefixLister, clamp_page_size
from .models import CreateOutcome, DeleteOutcome, OperationContext, TransferOutcome
from .pacing import FixedIntervalPacing, PacingPolicy
from .paths import destination_key, is_within, normalize_folder_path, placeholder_key
from .transfer import ObjectTransplanter

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_CONTENT_TYPE = "text/plain"


class FolderOperationOrchestrator:
    """Runs folder operations as sequences of per-object remote calls.

    Every call is issued sequentially. Pages are separated by the pacing
    policy. Per-object failures are counted, never raised; only a failed first
    listing (or a failed placeholder write) aborts an operation, and it does so
    before anything has been mutated.

    Rename and move copy everything first and then re-list the source prefix
    from scratch, deleting whatever is found. By default that second pass does
    not look at which transplants failed, so a failed object is still removed
    from the source. ``strict=True`` keeps the source copy of those objects.
    """

    def __init__(
        self,
        store,
        *,
        lister: PrefixLister | None = None,
        transplanter: ObjectTransplanter | None = None,
        pacing: PacingPolicy | None = None,
        audit_sink: AuditSink | None = None,
        webhooks: WebhookNotifier | None = None,
        page_size: int = MAX_PAGE_SIZE,
        strict: bool = False,
    ):
        self._store = store
        self._lister = lister or PrefixLister(store)
        self._transplanter = transplanter or ObjectTransplanter(store)
        self._pacing = pacing or FixedIntervalPacing()
        self._audit = audit_sink or NullAuditSink()
        self._webhooks = webhooks or NullWebhookNotifier()
        self._page_size = clamp_page_size(page_size)
        self._strict = strict

    def create(self, bucket: str, folder_name: str, *, user: str = "") -> CreateOutcome:
        """Write an empty ``.keep`` placeholder so the folder shows up in listings.

        Repeated calls overwrite the same key.
        """

        folder_path = normalize_folder_path(folder_name)
        context = OperationContext(source_bucket=bucket, source_prefix=folder_path, user=user)
        LOGGER.info("Creating folder %s/%s", bucket, folder_path)
        try:
            self._store.put_object(bucket, placeholder_key(folder_path), b"", PLACEHOLDER_CONTENT_TYPE)
        except RemoteError as exc:
            self._record_failure(FOLDER_CREATE, context, exc)
            raise
        self._notify(FOLDER_CREATE, context)
        return CreateOutcome(folder_path=folder_path)

    def rename(
        self,
        bucket: str,
        old_path: str,
        new_path: str,
        *,
        user: str = "",
        strict: Optional[bool] = None,
    ) -> TransferOutcome:
        context = OperationContext(
            source_bucket=bucket,
            source_prefix=normalize_folder_path(old_path),
            destination_prefix=normalize_folder_path(new_path),
            user=user,
        )
        self._reject_nested(context)
        return self._run_transfer("rename", FOLDER_RENAME, context, finalize=True, strict=strict)

    def copy(
        self,
        bucket: str,
        folder_path: str,
        destination_bucket: str,
        destination_path: str | None = None,
        *,
        user: str = "",
    ) -> TransferOutcome:
        context = self._transfer_context(bucket, folder_path, destination_bucket, destination_path, user)
        return self._run_transfer("copy", FOLDER_COPY, context, finalize=False)

    def move(
        self,
        bucket: str,
        folder_path: str,
        destination_bucket: str,
        destination_path: str | None = None,
        *,
        user: str = "",
        strict: Optional[bool] = None,
    ) -> TransferOutcome:
        context = self._transfer_context(bucket, folder_path, destination_bucket, destination_path, user)
        return self._run_transfer("move", FOLDER_MOVE, context, finalize=True, strict=strict)

    def delete(
        self,
        bucket: str,
        folder_path: str,
        *,
        force: bool = False,
        user: str = "",
    ) -> DeleteOutcome:
        """Delete every object under the folder.

        Without ``force`` a non-empty folder is left untouched and the outcome
        reports how many objects the first page holds, so the caller can ask for
        confirmation.
        """

        prefix = normalize_folder_path(folder_path)
        context = OperationContext(source_bucket=bucket, source_prefix=prefix, force=force, user=user)
        LOGGER.info("Deleting folder %s/%s (force=%s)", bucket, prefix, force)
        deletions = FailureAccumulator()
        try:
            if not force:
                preview = self._lister.list(bucket, prefix, page_size=self._page_size)
                if preview.objects:
                    return DeleteOutcome(file_count=len(preview.objects), confirmed=False)
            self._sweep(bucket, prefix, deletions, fatal_first_page=force)
        except RemoteListError as exc:
            self._record_failure(FOLDER_DELETE, context, exc)
            raise

        LOGGER.info("Deleted folder %s/%s: %d deleted, %d failed", bucket, prefix, deletions.succeeded, deletions.failed)
        self._notify(
            FOLDER_DELETE,
            context,
            metadata={"filesDeleted": deletions.succeeded, "force": force},
            files_deleted=deletions.succeeded,
        )
        return DeleteOutcome(
            deleted=deletions.succeeded,
            failed=deletions.failed,
            file_count=deletions.total,
        )

    def _transfer_context(
        self,
        bucket: str,
        folder_path: str,
        destination_bucket: str,
        destination_path: str | None,
        user: str,
    ) -> OperationContext:
        if not destination_bucket:
            raise ValidationError("Destination bucket is required")
        context = OperationContext(
            source_bucket=bucket,
            source_prefix=normalize_folder_path(folder_path),
            destination_bucket=destination_bucket,
            destination_prefix=normalize_folder_path(destination_path or folder_path),
            user=user,
        )
        self._reject_nested(context)
        return context

    def _reject_nested(self, context: OperationContext) -> None:
        # Overlapping prefixes in one bucket let rebuilt keys land back under
        # the source, where they overwrite pending objects or get swept.
        if not context.same_bucket:
            return
        source, destination = context.source_prefix, context.destination_prefix
        if is_within(destination, source) or is_within(source, destination):
            raise ValidationError("Destination folder cannot overlap the source folder")

    def _run_transfer(
        self,
        operation: str,
        event_type: str,
        context: OperationContext,
        *,
        finalize: bool,
        strict: Optional[bool] = None,
    ) -> TransferOutcome:
        strict = self._strict if strict is None else strict
        LOGGER.info(
            "Starting folder %s %s/%s -> %s/%s",
            operation,
            context.source_bucket,
            context.source_prefix,
            context.destination_bucket,
            context.destination_prefix,
        )
        transfers = FailureAccumulator()
        deletions = FailureAccumulator()
        try:
            complete = self._transfer(context, transfers)
        except RemoteListError as exc:
            self._record_failure(event_type, context, exc)
            raise

        if finalize and complete:
            skip_keys = transfers.failed_keys if strict else frozenset()
            self._sweep(context.source_bucket, context.source_prefix, deletions, skip_keys=skip_keys)
        elif finalize:
            LOGGER.warning(
                "Leaving %s/%s in place because the transfer stopped early",
                context.source_bucket,
                context.source_prefix,
            )

        outcome = TransferOutcome(
            operation=operation,
            succeeded=transfers.succeeded,
            failed=transfers.failed,
            deleted=deletions.succeeded,
            delete_failed=deletions.failed,
            skipped=deletions.skipped,
            complete=complete,
            failed_keys=sorted(transfers.failed_keys),
        )
        LOGGER.info(
            "Finished folder %s: %d transferred, %d failed, %d deleted",
            operation,
            outcome.succeeded,
            outcome.failed,
            outcome.deleted,
        )
        self._notify(
            event_type,
            context,
            metadata=self._transfer_metadata(outcome, finalize=finalize, strict=strict),
            status="success" if complete else "partial",
            include_destination=True,
            files_transferred=outcome.succeeded,
            files_failed=outcome.failed,
        )
        return outcome

    def _transfer(self, context: OperationContext, transfers: FailureAccumulator) -> bool:
        """Transplant every listed object; return False if listing stopped early."""

        pages = self._lister.iter_pages(
            context.source_bucket,
            context.source_prefix,
            page_size=self._page_size,
            between_pages=self._pacing.wait,
        )
        try:
            for page in pages:
                for record in page.objects:
                    self._transplant_one(context, record.key, transfers)
        except SubsequentListError as exc:
            LOGGER.warning("Stopped transferring %s/%s: %s", context.source_bucket, context.source_prefix, exc)
            return False
        return True

    def _transplant_one(self, context: OperationContext, key: str, transfers: FailureAccumulator) -> None:
        try:
            target_key = destination_key(key, context.source_prefix, context.destination_prefix)
        except ValueError as exc:
            LOGGER.warning("Skipping %s/%s: %s", context.source_bucket, key, exc)
            transfers.record_failure(key, exc)
            return
        if self._transplanter.transplant(context.source_bucket, key, context.destination_bucket, target_key):
            transfers.record_success(key)
        else:
            transfers.record_failure(key)

    def _sweep(
        self,
        bucket: str,
        prefix: str,
        deletions: FailureAccumulator,
        *,
        fatal_first_page: bool = False,
        skip_keys: frozenset[str] | set[str] = frozenset(),
    ) -> None:
        """Delete every object under ``prefix``, page by page, from a fresh listing."""

        pages = self._lister.iter_pages(
            bucket,
            prefix,
            page_size=self._page_size,
            between_pages=self._pacing.wait,
        )
        try:
            for page in pages:
                for record in page.objects:
                    if record.key in skip_keys:
                        deletions.record_skip(record.key)
                        continue
                    try:
                        self._store.delete_object(bucket, record.key)
                    except RemoteDeleteError as exc:
                        LOGGER.warning("Could not delete %s/%s: %s", bucket, record.key, exc)
                        deletions.record_failure(record.key, exc)
                    else:
                        deletions.record_success(record.key)
        except SubsequentListError as exc:
            LOGGER.warning("Stopped deleting under %s/%s: %s", bucket, prefix, exc)
        except RemoteListError as exc:
            if fatal_first_page:
                raise
            LOGGER.warning("Could not list %s/%s for deletion: %s", bucket, prefix, exc)

    @staticmethod
    def _transfer_metadata(outcome: TransferOutcome, *, finalize: bool, strict: bool) -> dict[str, Any]:
        counter = "filesMoved" if outcome.operation == "move" else "filesCopied"
        metadata: dict[str, Any] = {counter: outcome.succeeded, "filesFailed": outcome.failed}
        if finalize:
            metadata["filesDeleted"] = outcome.deleted
            metadata["strict"] = strict
        if not outcome.complete:
            metadata["complete"] = False
        return metadata

    def _notify(
        self,
        event_type: str,
        context: OperationContext,
        *,
        metadata: dict[str, Any] | None = None,
        status: str = "success",
        include_destination: bool = False,
        **payload_extra: Any,
    ) -> None:
        try:
            self._audit.record(
                event_type,
                context.source_bucket,
                key=context.source_prefix,
                user=context.user,
                status=status,
                destination_bucket=context.destination_bucket if include_destination else None,
                destination_key=context.destination_prefix if include_destination else None,
                metadata=metadata,
            )
        except Exception:
            LOGGER.exception("Failed to record audit entry for %s", event_type)

        if include_destination:
            payload_extra.setdefault("destination_bucket", context.destination_bucket)
            payload_extra.setdefault("destination_path", context.destination_prefix)
        payload = build_folder_payload(
            event_type,
            context.source_bucket,
            context.source_prefix,
            context.user,
            **payload_extra,
        )
        try:
            self._webhooks.trigger(event_type, payload)
        except Exception:
            LOGGER.exception("Failed to trigger webhook for %s", event_type)

    def _record_failure(self, event_type: str, context: OperationContext, exc: Exception) -> None:
        LOGGER.error("Folder operation %s on %s/%s failed: %s", event_type, context.source_bucket, context.source_prefix, exc)
        try:
            self._audit.record(
                event_type,
                context.source_bucket,
                key=context.source_prefix,
                user=context.user,
                status="failed",
                metadata={"error": str(exc)},
            )
        except Exception:
            LOGGER.exception("Failed to record audit entry for %s", event_type)
