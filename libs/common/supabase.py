"""Supabase client factories and storage helpers.

The supabase SDK is synchronous; async callers wrap its calls in
``asyncio.to_thread``.
"""

import asyncio
import uuid
from functools import lru_cache

from supabase import Client, create_client

from libs.common.config import get_settings


@lru_cache
def get_supabase_admin_client() -> Client:
    """Client using the service-role key (storage, admin auth calls)."""
    settings = get_settings()
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


async def upload_public_file(
    data: bytes,
    filename: str,
    content_type: str = "image/jpeg",
    folder: str = "products",
    bucket: str | None = None,
    client: Client | None = None,
) -> str:
    """Upload to a storage bucket under a random name and return its public URL."""
    settings = get_settings()
    bucket = bucket or settings.SUPABASE_STORAGE_BUCKET
    client = client or get_supabase_admin_client()

    file_ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
    path = f"{folder}/{uuid.uuid4()}.{file_ext}"

    storage = client.storage.from_(bucket)
    await asyncio.to_thread(
        storage.upload,
        path=path,
        file=data,
        file_options={"content-type": content_type},
    )
    return await asyncio.to_thread(storage.get_public_url, path)
