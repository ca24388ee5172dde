"""
User document storage (S3).

Documents are stored under ``{user_id}/{document_id}``. Reads hand out
presigned GET URLs; callers that only need a best-effort URL (channel
images, avatars) get ``None`` on any storage failure instead of an error.
"""

from __future__ import annotations

import asyncio
import uuid
from functools import lru_cache
from typing import Any, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import get_settings

log = structlog.get_logger()


def document_key(user_id: uuid.UUID, document_id: uuid.UUID) -> str:
    return f"{user_id}/{document_id}"


class DocumentStorage:
    """Thin async wrapper around a boto3 S3 client."""

    def __init__(self, bucket: str, client: Any, url_ttl_seconds: int = 3600):
        self.bucket = bucket
        self._client = client
        self._url_ttl = url_ttl_seconds

    async def get_document_url(
        self, user_id: uuid.UUID, document_id: uuid.UUID
    ) -> Optional[str]:
        """Presigned URL for a document, or None when it cannot be produced."""
        if not self.bucket:
            log.warning("documents.bucket_not_configured")
            return None
        try:
            return await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": document_key(user_id, document_id)},
                ExpiresIn=self._url_ttl,
            )
        except (BotoCoreError, ClientError) as exc:
            log.warning(
                "documents.url_failed",
                user_id=str(user_id),
                document_id=str(document_id),
                error=str(exc),
            )
            return None

    async def delete_document(self, user_id: uuid.UUID, document_id: uuid.UUID) -> None:
        """Delete the stored object. Storage errors propagate."""
        await asyncio.to_thread(
            self._client.delete_object,
            Bucket=self.bucket,
            Key=document_key(user_id, document_id),
        )
        log.info("documents.deleted", user_id=str(user_id), document_id=str(document_id))


@lru_cache
def get_document_storage() -> DocumentStorage:
    """FastAPI dependency: the process-wide document storage."""
    settings = get_settings()
    client = boto3.client(
        "s3",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        endpoint_url=settings.aws_endpoint_url,
    )
    return DocumentStorage(
        settings.aws_bucket_name,
        client,
        url_ttl_seconds=settings.document_url_ttl_seconds,
    )
