from __future__ import annotations

import asyncio
import logging
import os
import uuid
from typing import Any, Iterable, List, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from propmarket.errors import ConfigError

logger = logging.getLogger(__name__)

# (bytes, content_type, filename)
Upload = Tuple[bytes, Optional[str], Optional[str]]


def _split_hint(key_hint: Optional[str], default_ext: str) -> Tuple[str, str]:
    """``"folder/name.png"`` -> ``("folder", ".png")``."""
    folder, _, name = (key_hint or "").rpartition("/")
    ext = default_ext
    if "." in name:
        ext = "." + name.rsplit(".", 1)[-1].lower()
    return folder, ext


class Storage:
    def save_bytes(self, data: bytes, *, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        raise NotImplementedError

    async def save_many(self, uploads: Iterable[Upload], *, folder: str = "") -> List[str]:
        """Stores uploads in order; the first URL is the primary image."""
        urls: List[str] = []
        for data, ctype, name in uploads:
            hint = f"{folder}/{name or ''}" if folder else name
            urls.append(await asyncio.to_thread(self.save_bytes, data, content_type=ctype, key_hint=hint))
        return urls


class LocalStorage(Storage):
    def __init__(self, base_dir: str, public_base: str = "/media") -> None:
        self.base_dir = base_dir
        self.public_base = public_base.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def save_bytes(self, data: bytes, *, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        _, ext = _split_hint(key_hint, ".jpg")
        name = f"{uuid.uuid4()}{ext}"
        with open(os.path.join(self.base_dir, name), "wb") as f:
            f.write(data)
        return f"{self.public_base}/{name}"


class S3Storage(Storage):
    """
    Any S3-compatible bucket (AWS, R2, MinIO). Objects land under
    ``<folder>/<uuid><ext>``; the URL comes from ``public_base_url`` when set,
    path-style ``<endpoint>/<bucket>/<key>`` otherwise.
    """

    def __init__(
        self,
        *,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
                config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
            )
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            raise ConfigError(f"Storage bucket {self.bucket!r} is not reachable: {e}") from e

    def save_bytes(self, data: bytes, *, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        folder, ext = _split_hint(key_hint, "")
        key = f"{folder or 'uploads'}/{uuid.uuid4()}{ext}"
        extra = {"ContentType": content_type} if content_type else {}
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        endpoint = self.client.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"


def build_storage(cfg) -> Storage:
    """Picks the backend from ``STORAGE_BACKEND``; local is the default."""
    backend = (cfg.STORAGE_BACKEND or "local").lower()
    if backend == "local":
        return LocalStorage(cfg.MEDIA_DIR, cfg.MEDIA_PUBLIC_BASE)
    if backend != "s3":
        raise ConfigError(f"Unknown STORAGE_BACKEND: {cfg.STORAGE_BACKEND!r}")

    if not (cfg.S3_BUCKET and cfg.S3_ACCESS_KEY_ID and cfg.S3_SECRET_ACCESS_KEY):
        raise ConfigError("S3 storage needs S3_BUCKET, S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY")
    logger.info("storage_backend", extra={"backend": "s3", "bucket": cfg.S3_BUCKET})
    return S3Storage(
        bucket=cfg.S3_BUCKET,
        endpoint_url=cfg.S3_ENDPOINT_URL,
        access_key=cfg.S3_ACCESS_KEY_ID,
        secret_key=cfg.S3_SECRET_ACCESS_KEY,
        region=cfg.S3_REGION,
        public_base_url=cfg.S3_PUBLIC_BASE_URL,
    )
