from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

from .listing import MAX_PAGE_SIZE
from .pacing import DEFAULT_PAGE_DELAY

LOGGER = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """Tunables for folder operations."""

    page_size: int = MAX_PAGE_SIZE
    page_delay: float = DEFAULT_PAGE_DELAY
    strict_finalize: bool = False
    audit_log_path: str = ""


def _coerce_page_size(value) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError):
        return AppSettings.page_size
    if size <= 0:
        return AppSettings.page_size
    return min(size, MAX_PAGE_SIZE)


def _coerce_delay(value) -> float:
    if isinstance(value, bool):
        return AppSettings.page_delay
    try:
        delay = float(value)
    except (TypeError, ValueError):
        return AppSettings.page_delay
    if delay < 0:
        return AppSettings.page_delay
    return delay


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3folders_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable settings file %s", self._path)
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()

        strict = data.get("strict_finalize", AppSettings.strict_finalize)
        audit_log_path = data.get("audit_log_path", AppSettings.audit_log_path)
        return AppSettings(
            page_size=_coerce_page_size(data.get("page_size", AppSettings.page_size)),
            page_delay=_coerce_delay(data.get("page_delay", AppSettings.page_delay)),
            strict_finalize=strict if isinstance(strict, bool) else AppSettings.strict_finalize,
            audit_log_path=audit_log_path if isinstance(audit_log_path, str) else AppSettings.audit_log_path,
        )

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        payload["page_size"] = min(max(int(settings.page_size), 1), MAX_PAGE_SIZE)
        payload["page_delay"] = max(float(settings.page_delay), 0.0)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
