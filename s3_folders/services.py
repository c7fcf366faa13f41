from __future__ import annotations
"""Access to the remote S3-compatible object store."""
from typing import Callable

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    ObjectNotFound,
    PerObjectTransferError,
    RemoteDeleteError,
    RemoteListError,
)
from .models import DEFAULT_CONTENT_TYPE, ListingPage, ObjectRecord

DEFAULT_REGION = "auto"

_NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


class S3ObjectStore:
    """The four object calls the folder engine needs, bound to one client.

    botocore errors never escape this class; they are translated into the
    exceptions from :mod:`s3_folders.errors`.
    """

    def __init__(self, client):
        self._client = client

    def list_objects(
        self,
        bucket: str,
        prefix: str,
        *,
        max_keys: int,
        cursor: str | None = None,
    ) -> ListingPage:
        params = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": max_keys}
        if cursor:
            params["ContinuationToken"] = cursor
        try:
            response = self._client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteListError(
                f"Failed to list objects under '{prefix}': {exc}", bucket=bucket, key=prefix
            ) from exc

        objects = [
            ObjectRecord(
                key=entry["Key"],
                size=int(entry.get("Size") or 0),
                uploaded_at=entry.get("LastModified"),
            )
            for entry in response.get("Contents", [])
        ]
        return ListingPage(
            objects=objects,
            cursor=response.get("NextContinuationToken"),
            is_truncated=bool(response.get("IsTruncated", False)),
        )

    def get_object(self, bucket: str, key: str) -> tuple[bytes, str]:
        """Return the object's bytes and content type."""

        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
        except (ClientError, BotoCoreError) as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise ObjectNotFound(f"Object '{key}' does not exist", bucket=bucket, key=key) from exc
            raise PerObjectTransferError(
                f"Failed to fetch '{key}': {exc}", bucket=bucket, key=key
            ) from exc
        return data, response.get("ContentType") or DEFAULT_CONTENT_TYPE

    def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as exc:
            raise PerObjectTransferError(
                f"Failed to store '{key}': {exc}", bucket=bucket, key=key
            ) from exc

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteDeleteError(
                f"Failed to delete '{key}': {exc}", bucket=bucket, key=key
            ) from exc


class ObjectStoreService:
    """Creates S3 clients and the stores built on top of them."""

    def __init__(self, client_factory: Callable[..., object] | None = None):
        self._client_factory = client_factory or boto3.client

    def list_buckets(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region_name: str = DEFAULT_REGION,
    ) -> list[str]:
        """Return the available bucket names.

        Raises:
            BotoCoreError | ClientError: when unable to connect or list buckets.
        """

        client = self._create_client(endpoint_url, access_key, secret_key, region_name)
        response = client.list_buckets()
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def open_store(
        self,
        *,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region_name: str = DEFAULT_REGION,
    ) -> S3ObjectStore:
        client = self._create_client(endpoint_url, access_key, secret_key, region_name)
        return S3ObjectStore(client)

    def _create_client(
        self,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region_name: str,
    ):
        config = Config(signature_version="s3v4")
        return self._client_factory(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region_name or DEFAULT_REGION,
            config=config,
        )
