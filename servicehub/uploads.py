"""
Proxy for the UploadThing file-upload API.

Browsers can't hold the UploadThing API key, so upload requests come here
and are forwarded with the key attached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds

FILE_ROUTER_CONFIG = {
    "imageUploader": {
        "maxFileSize": "4MB",
        "maxFileCount": 5,
    },
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Uploadthing-Api-Key",
}


@dataclass
class UploadProxyResult:
    status_code: int
    body: dict


@dataclass
class UploadThingClient:
    api_key: str
    api_url: str = "https://api.uploadthing.com/v6/uploadFiles"

    def presign(self, files: list) -> UploadProxyResult:
        """Ask UploadThing for presigned upload URLs for ``files``."""
        response = requests.post(
            self.api_url,
            json={"files": files},
            headers={
                "Content-Type": "application/json",
                "X-Uploadthing-Api-Key": self.api_key,
            },
            timeout=REQUEST_TIMEOUT,
        )
        if not response.ok:
            logger.warning(
                "UploadThing presign failed with %s", response.status_code
            )
            return UploadProxyResult(response.status_code, {"error": response.text})
        return UploadProxyResult(200, response.json())


def handle_upload_request(client: UploadThingClient, body: dict) -> UploadProxyResult:
    """
    Upload requests are forwarded; anything else gets the file-router
    config the client library asks for on startup.
    """
    if body.get("actionType") == "upload":
        return client.presign(body.get("files") or [])
    return UploadProxyResult(200, FILE_ROUTER_CONFIG)
