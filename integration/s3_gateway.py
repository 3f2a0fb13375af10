# integration/s3_gateway.py
from __future__ import annotations
import re
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from services.errors import StorageError

# S3 "safe characters" plus "/" as the namespace separator
_SAFE_KEY = re.compile(r"^[A-Za-z0-9!_.*'()/-]+$")
MAX_KEY_BYTES = 1024


def _nz(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = s.strip()
    return s if s else None


def validate_key(key: str) -> str:
    """Reject keys outside the namespace we write to. Does not check existence."""
    if not key or not isinstance(key, str):
        raise StorageError("Storage key must be a non-empty string")
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise StorageError("Storage key too long")
    if key.startswith("/") or "//" in key:
        raise StorageError(f"Malformed storage key: {key!r}")
    if not _SAFE_KEY.match(key) or any(part in (".", "..") for part in key.split("/")):
        raise StorageError(f"Malformed storage key: {key!r}")
    return key


class S3Gateway:
    def __init__(
        self,
        *,
        bucket: Optional[str],
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = _nz(bucket)
        if client is not None:
            self.client = client
        else:
            # single attempt: the invoice pipeline does not retry and neither does the gateway
            self.client = boto3.client(
                "s3",
                region_name=_nz(region),
                endpoint_url=_nz(endpoint_url),
                aws_access_key_id=_nz(access_key_id),
                aws_secret_access_key=_nz(secret_access_key),
                config=Config(signature_version="s3v4", retries={"max_attempts": 1, "mode": "standard"}),
            )

    @classmethod
    def from_config(cls) -> "S3Gateway":
        from services import config

        return cls(
            bucket=config.AWS_S3_BUCKET_NAME,
            region=config.AWS_REGION,
            access_key_id=config.AWS_ACCESS_KEY_ID,
            secret_access_key=config.AWS_SECRET_ACCESS_KEY,
            endpoint_url=config.S3_ENDPOINT_URL,
        )

    # ---------- internal helpers ----------
    def _bucket(self) -> str:
        if not self.bucket:
            raise StorageError("S3Gateway: AWS_S3_BUCKET_NAME must be set.")
        return self.bucket

    # ---------- public API ----------
    def upload_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        bucket = self._bucket()
        validate_key(key)
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload of {key} to s3://{bucket} failed: {e}") from e
        return key

    def sign_url(self, key: str, ttl_seconds: int) -> str:
        """Presigned GET for `key`, valid for `ttl_seconds`. Object existence is not verified."""
        bucket = self._bucket()
        validate_key(key)
        if int(ttl_seconds) <= 0:
            raise StorageError("Signed URL expiry must be positive")
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=int(ttl_seconds),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not sign URL for {key}: {e}") from e

    def ping(self) -> bool:
        try:
            self.client.head_bucket(Bucket=self._bucket())
            return True
        except (StorageError, ClientError, BotoCoreError):
            return False
