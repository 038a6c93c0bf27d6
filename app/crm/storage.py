from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


class Storage:
    """Key-addressed blob store. Objects live at ``bucket`` + ``key``."""

    def put_object(self, bucket: str, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError

    def get_object(self, bucket: str, key: str) -> bytes:
        raise NotImplementedError


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def _path(self, bucket: str, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        parts = safe_key.split("/")
        # Keys are flat names like S3 keys: no relative segments, no empty leaf.
        if not safe_key or not parts[-1] or any(part in (".", "..") for part in parts):
            raise StorageError(f"invalid key: {key!r}")
        base = (self.root / bucket).resolve()
        p = (base / safe_key).resolve()
        if p != base.joinpath(*parts):
            raise StorageError(f"key escapes bucket: {key!r}")
        return p

    def put_object(self, bucket: str, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self._path(bucket, key)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(data)
        except OSError as e:
            raise StorageError(f"cannot write {bucket}/{key}") from e

    def get_object(self, bucket: str, key: str) -> bytes:
        p = self._path(bucket, key)
        try:
            return p.read_bytes()
        except OSError as e:
            raise StorageError(f"cannot read {bucket}/{key}") from e


@dataclass(frozen=True)
class S3Storage(Storage):
    endpoint: str
    region: str
    access_key_id: str
    secret_access_key: str

    def _client(self):
        return boto3.client(
            "s3",
            endpoint_url=f"https://{self.endpoint}" if self.endpoint else None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
        )

    def put_object(self, bucket: str, key: str, data: bytes, *, content_type: str | None = None) -> None:
        extra: dict[str, object] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self._client().put_object(Bucket=bucket, Key=key, Body=data, **extra)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"put_object failed for {bucket}/{key}") from e

    def get_object(self, bucket: str, key: str) -> bytes:
        try:
            obj = self._client().get_object(Bucket=bucket, Key=key)
            return obj["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"get_object failed for {bucket}/{key}") from e


@dataclass(frozen=True)
class S3Buckets:
    customer: str


def buckets_from_config(config: dict) -> S3Buckets:
    return S3Buckets(customer=(config.get("S3_BUCKET_CUSTOMER") or "customer").strip())


def storage_from_config(config: dict) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").strip().lower()
    if backend == "s3":
        return S3Storage(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "us-east-1").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
        )
    if backend != "local":
        logger.warning("Unknown STORAGE_BACKEND=%r; falling back to local storage", backend)
    root = (config.get("STORAGE_LOCAL_ROOT") or "").strip()
    return LocalStorage(root=Path(root) if root else Path.cwd() / "storage")
