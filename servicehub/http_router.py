"""
Raw HTTP endpoints: the UploadThing proxy and the Meta OAuth callback.

Both are hit directly by browsers (the upload widget and Facebook's
redirect), so they answer with static, permissive CORS headers instead of
going through the JSON API conventions.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from servicehub import meta
from servicehub.config import Settings, get_settings
from servicehub.db import DbClient
from servicehub.dependencies import get_db_client, get_meta_client, get_upload_client
from servicehub.errors import ServiceError
from servicehub.meta import MetaGraphClient
from servicehub.uploads import (
    CORS_HEADERS,
    FILE_ROUTER_CONFIG,
    UploadThingClient,
    handle_upload_request,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/uploadthing")
async def uploadthing(
    request: Request,
    client: Optional[UploadThingClient] = Depends(get_upload_client),
):
    if client is None:
        return JSONResponse({"error": "UploadThing not configured"}, status_code=500)
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        result = handle_upload_request(client, body)
    except Exception:
        logger.exception("UploadThing router error")
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
            headers=CORS_HEADERS,
        )
    return JSONResponse(result.body, status_code=result.status_code, headers=CORS_HEADERS)


@router.get("/uploadthing")
def uploadthing_config():
    return JSONResponse(FILE_ROUTER_CONFIG, headers=CORS_HEADERS)


@router.options("/uploadthing")
def uploadthing_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


def _frontend_redirect(frontend_url: str, **params: str) -> RedirectResponse:
    separator = "&" if "?" in frontend_url else "?"
    return RedirectResponse(
        f"{frontend_url}{separator}{urlencode(params)}",
        status_code=302,
        headers=CORS_HEADERS,
    )


@router.get("/meta/oauth/callback")
def meta_oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
    client: Optional[MetaGraphClient] = Depends(get_meta_client),
    settings: Settings = Depends(get_settings),
):
    if error or not code or not state:
        logger.warning("Meta OAuth callback without code/state (error=%s)", error)
        return _frontend_redirect(settings.frontend_url, meta_error="1")
    try:
        meta.handle_callback(db, client, code, state)
    except ServiceError as exc:
        logger.warning("Meta OAuth callback failed: %s", exc.message)
        return _frontend_redirect(settings.frontend_url, meta_error="1")
    except Exception:
        logger.exception("Meta OAuth callback failed")
        return _frontend_redirect(settings.frontend_url, meta_error="1")
    return _frontend_redirect(settings.frontend_url, meta_connected="1")


@router.options("/meta/oauth/callback")
def meta_oauth_callback_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)
