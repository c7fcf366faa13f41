from __future__ import annotations
"""Saved object-store connections, with secrets kept in the OS keychain."""
from dataclasses import dataclass
import json
import logging
from pathlib import Path

import keyring
from keyring.errors import KeyringError

from .services import DEFAULT_REGION

LOGGER = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "pys3folders"


@dataclass
class ConnectionProfile:
    """Endpoint and credentials for one S3-compatible account."""

    name: str
    endpoint_url: str
    access_key: str
    secret_key: str = ""
    region_name: str = DEFAULT_REGION

    def connection_params(self) -> dict[str, str]:
        return {
            "endpoint_url": self.endpoint_url,
            "access_key": self.access_key,
            "secret_key": self.secret_key,
            "region_name": self.region_name or DEFAULT_REGION,
        }

    def to_record(self) -> dict[str, str]:
        """Serializable form without the secret."""

        return {
            "name": self.name,
            "endpoint_url": self.endpoint_url,
            "access_key": self.access_key,
            "region_name": self.region_name,
        }


class KeychainStore:
    """Stores secret keys in the OS keychain, one entry per profile name."""

    def __init__(self, service_name: str = KEYCHAIN_SERVICE):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError as exc:
            LOGGER.warning("Keychain lookup for %s failed: %s", profile_name, exc)
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError as exc:
            LOGGER.warning("Keychain update for %s failed: %s", profile_name, exc)

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            # Nothing stored for this profile.
            return


class ProfileStorage:
    """JSON file of connection profiles; secrets are resolved through the keychain.

    Files written by older versions may still hold a plaintext ``secret_key``.
    Such secrets are moved into the keychain on load and the file is rewritten
    without them.
    """

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3folders_connections.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[ConnectionProfile]:
        profiles: list[ConnectionProfile] = []
        migrated = False
        for entry in self._read_entries():
            profile = self._parse_entry(entry)
            if profile is None:
                continue
            plaintext = entry.get("secret_key") or ""
            if plaintext:
                migrated = True
                self._keychain.set_secret(profile.name, plaintext)
                profile.secret_key = plaintext
            else:
                profile.secret_key = self._keychain.get_secret(profile.name)
            profiles.append(profile)
        if migrated:
            LOGGER.info("Moved plaintext secrets from %s into the keychain", self._path)
            self._write_records([profile.to_record() for profile in profiles])
        return profiles

    def save(self, profiles: list[ConnectionProfile]) -> None:
        current_names = {profile.name for profile in profiles}
        stale_names = self._stored_names() - current_names
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
        for name in stale_names:
            self._keychain.delete_secret(name)
        self._write_records([profile.to_record() for profile in profiles])

    def _read_entries(self) -> list[dict]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable profile file %s", self._path)
            return []
        if not isinstance(data, list):
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    @staticmethod
    def _parse_entry(entry: dict) -> ConnectionProfile | None:
        try:
            return ConnectionProfile(
                name=entry["name"],
                endpoint_url=entry["endpoint_url"],
                access_key=entry["access_key"],
                region_name=entry.get("region_name") or DEFAULT_REGION,
            )
        except KeyError:
            return None

    def _stored_names(self) -> set[str]:
        return {
            entry["name"]
            for entry in self._read_entries()
            if isinstance(entry.get("name"), str) and entry["name"]
        }

    def _write_records(self, records: list[dict[str, str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(records, indent=2), encoding="utf-8")
