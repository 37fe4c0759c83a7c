"""
Avatar storage backed by a Supabase Storage bucket.
"""
import logging
from functools import lru_cache
from typing import Protocol

from supabase import Client, create_client

from app.core.config import settings

logger = logging.getLogger(__name__)


class AvatarUploadError(Exception):
    def __init__(self, bucket: str, key: str):
        super().__init__(f"Upload of {key!r} to bucket {bucket!r} failed")
        self.bucket = bucket
        self.key = key


class AvatarStorage(Protocol):
    def upload(self, bucket: str, key: str, payload: bytes, content_type: str | None = None) -> None:
        ...


class SupabaseAvatarStorage:
    """
    The client is created on first upload, so missing SUPABASE_URL /
    SUPABASE_KEY surface as a failed upload rather than at start-up.
    """

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self._client: Client | None = None

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = create_client(self.url, self.key)
        return self._client

    def upload(self, bucket: str, key: str, payload: bytes, content_type: str | None = None) -> None:
        file_options = {"content-type": content_type or "application/octet-stream"}
        try:
            self._get_client().storage.from_(bucket).upload(key, payload, file_options)
        except Exception as e:
            raise AvatarUploadError(bucket, key) from e

        logger.info("Uploaded avatar %s to bucket %s (%d bytes)", key, bucket, len(payload))


@lru_cache
def get_avatar_storage() -> AvatarStorage:
    return SupabaseAvatarStorage(settings.SUPABASE_URL, settings.SUPABASE_KEY)
