"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from servicehub.config import get_settings
from servicehub.db import DbClient, InMemoryDbClient, SqlDbClient
from servicehub.meta import MetaGraphClient
from servicehub.queue import InMemoryJobQueue, JobQueue, RedisJobQueue
from servicehub.uploads import UploadThingClient

_db_client: DbClient | None = None
_queue_client: JobQueue | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so in-memory state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_queue_client() -> JobQueue:
    """
    Return a singleton queue client for dispatching jobs to workers.
    """
    global _queue_client
    if _queue_client:
        return _queue_client

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _queue_client = RedisJobQueue(
            url=settings.redis_url,
            queue_key=settings.redis_queue_key,
        )
    else:
        _queue_client = InMemoryJobQueue()
    return _queue_client


def get_meta_client() -> Optional[MetaGraphClient]:
    """None until the Meta app id, secret and redirect URI are all set."""
    settings = get_settings()
    if not (
        settings.meta_app_id and settings.meta_app_secret and settings.meta_redirect_uri
    ):
        return None
    return MetaGraphClient(
        app_id=settings.meta_app_id,
        app_secret=settings.meta_app_secret,
        redirect_uri=settings.meta_redirect_uri,
        version=settings.meta_graph_version,
    )


def get_upload_client() -> Optional[UploadThingClient]:
    settings = get_settings()
    if not settings.uploadthing_token:
        return None
    return UploadThingClient(
        api_key=settings.uploadthing_token,
        api_url=settings.uploadthing_api_url,
    )
