"""
Meta (Facebook / Instagram) integration.

Handles the OAuth code exchange for a user's Facebook login, discovery of
the Pages and Instagram Business account it can read, and the content sync
that copies recent posts into ``social_posts``. External calls go straight
to the Graph API with no retries or pagination; the scheduled sync runs
again soon enough.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

import requests

from servicehub.auth import Identity
from servicehub.db import (
    DbClient,
    MetaAccountRecord,
    OAuthStateRecord,
    SocialPostRecord,
    now_ms,
)
from servicehub.errors import InvalidRequest, MetaApiError, NotFound
from servicehub.types import SocialSource

logger = logging.getLogger(__name__)

GRAPH_URL = "https://graph.facebook.com"
DIALOG_URL = "https://www.facebook.com"
REQUEST_TIMEOUT = 30  # seconds

OAUTH_STATE_TTL_MS = 10 * 60 * 1000
TOKEN_REFRESH_WINDOW_MS = 7 * 24 * 60 * 60 * 1000

OAUTH_SCOPES = (
    "public_profile",
    "pages_show_list",
    "pages_read_engagement",
    "instagram_basic",
)
INSTAGRAM_MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,timestamp"
PAGE_POST_FIELDS = "id,message,permalink_url,created_time,full_picture"


def _parse_graph_time(value: Optional[str]) -> Optional[int]:
    """Graph API timestamps look like 2024-05-01T12:30:00+0000."""
    if not value:
        return None
    try:
        return int(datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z").timestamp() * 1000)
    except ValueError:
        logger.warning("Unparseable Graph API timestamp: %s", value)
        return None


@dataclass
class MetaGraphClient:
    """Thin wrapper over the Graph API endpoints this service calls."""

    app_id: str
    app_secret: str
    redirect_uri: str
    version: str = "v19.0"

    def _request(self, method: str, path: str, params: dict) -> dict:
        url = f"{GRAPH_URL}/{self.version}/{path}"
        try:
            response = requests.request(
                method, url, params=params, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as exc:
            raise MetaApiError(f"Graph API request failed: {exc}") from exc
        try:
            data = response.json()
        except ValueError:
            raise MetaApiError(
                f"Graph API returned {response.status_code}: {response.text[:200]}"
            )
        if isinstance(data, dict) and data.get("error"):
            message = data["error"].get("message", "unknown error")
            raise MetaApiError(f"Facebook API error: {message}")
        if not response.ok:
            raise MetaApiError(f"Graph API returned {response.status_code}")
        return data

    def authorization_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.app_id,
                "redirect_uri": self.redirect_uri,
                "state": state,
                "scope": ",".join(OAUTH_SCOPES),
                "response_type": "code",
            }
        )
        return f"{DIALOG_URL}/{self.version}/dialog/oauth?{query}"

    def exchange_code(self, code: str) -> str:
        """Trade an authorization code for a short-lived user token."""
        data = self._request(
            "POST",
            "oauth/access_token",
            {
                "client_id": self.app_id,
                "redirect_uri": self.redirect_uri,
                "client_secret": self.app_secret,
                "code": code,
            },
        )
        return data["access_token"]

    def exchange_long_lived(self, token: str) -> tuple[str, Optional[int]]:
        """
        Trade a user token for a long-lived one. Returns the token and its
        expiry in epoch ms, or None when Facebook doesn't report one.
        """
        data = self._request(
            "GET",
            "oauth/access_token",
            {
                "grant_type": "fb_exchange_token",
                "client_id": self.app_id,
                "client_secret": self.app_secret,
                "fb_exchange_token": token,
            },
        )
        expires_in = data.get("expires_in") or 0
        expires_at = now_ms() + expires_in * 1000 if expires_in > 0 else None
        return data["access_token"], expires_at

    def get_me(self, token: str) -> dict:
        return self._request("GET", "me", {"access_token": token, "fields": "id,name"})

    def list_pages(self, token: str) -> list[dict]:
        data = self._request(
            "GET",
            "me/accounts",
            {"access_token": token, "fields": "id,name,access_token"},
        )
        return data.get("data") or []

    def get_instagram_account_id(self, page_id: str, token: str) -> Optional[str]:
        data = self._request(
            "GET",
            page_id,
            {"access_token": token, "fields": "instagram_business_account"},
        )
        account = data.get("instagram_business_account") or {}
        return account.get("id")

    def list_instagram_media(
        self, instagram_account_id: str, token: str, limit: int
    ) -> list[dict]:
        data = self._request(
            "GET",
            f"{instagram_account_id}/media",
            {
                "access_token": token,
                "fields": INSTAGRAM_MEDIA_FIELDS,
                "limit": limit,
            },
        )
        return data.get("data") or []

    def list_page_posts(self, page_id: str, token: str, limit: int) -> list[dict]:
        data = self._request(
            "GET",
            f"{page_id}/feed",
            {"access_token": token, "fields": PAGE_POST_FIELDS, "limit": limit},
        )
        return data.get("data") or []


def _require_client(client: Optional[MetaGraphClient]) -> MetaGraphClient:
    if client is None:
        raise InvalidRequest("Meta app credentials are not configured")
    return client


def begin_auth(
    db: DbClient, identity: Identity, client: Optional[MetaGraphClient]
) -> dict:
    client = _require_client(client)
    state = secrets.token_urlsafe(24)
    db.save_oauth_state(
        OAuthStateRecord(
            state=state,
            user_id=identity.subject,
            expires_at=now_ms() + OAUTH_STATE_TTL_MS,
        )
    )
    return {"auth_url": client.authorization_url(state), "state": state}


def handle_callback(
    db: DbClient, client: Optional[MetaGraphClient], code: str, state: str
) -> MetaAccountRecord:
    """
    Complete the OAuth flow for the user who started it.

    The browser lands here from Facebook without our bearer token, so the
    user is taken from the stored state rather than from the request.
    """
    client = _require_client(client)
    state_record = db.get_oauth_state(state)
    if not state_record or state_record.expires_at < now_ms():
        raise InvalidRequest("Invalid or expired OAuth state")

    short_lived = client.exchange_code(code)
    token, expires_at = client.exchange_long_lived(short_lived)
    me = client.get_me(token)

    account = db.save_meta_account(
        MetaAccountRecord(
            user_id=state_record.user_id,
            long_lived_user_token=token,
            token_expires_at=expires_at,
            facebook_user_id=me["id"],
        )
    )
    db.delete_oauth_state(state)
    logger.info("Connected Facebook user %s for %s", me["id"], account.user_id)
    return discover_pages(db, client, account)


def discover_pages(
    db: DbClient, client: MetaGraphClient, account: MetaAccountRecord
) -> MetaAccountRecord:
    """Record the user's Pages and the first linked Instagram Business account."""
    pages = client.list_pages(account.long_lived_user_token)
    connected_pages = [
        {
            "page_id": page["id"],
            "name": page.get("name"),
            "page_access_token": page.get("access_token"),
        }
        for page in pages
    ]

    instagram_account_id = None
    for page in connected_pages:
        try:
            instagram_account_id = client.get_instagram_account_id(
                page["page_id"], account.long_lived_user_token
            )
        except MetaApiError as exc:
            logger.warning(
                "Failed to get Instagram account for page %s: %s", page["page_id"], exc
            )
            continue
        if instagram_account_id:
            break

    return db.save_meta_account(
        replace(
            account,
            connected_pages=connected_pages,
            instagram_business_account_id=instagram_account_id,
            updated_at=now_ms(),
        )
    )


def connection_status(db: DbClient, identity: Optional[Identity]) -> dict:
    if identity is None:
        return {"connected": False, "account": None}
    account = db.get_meta_account(identity.subject)
    if not account:
        return {"connected": False, "account": None}
    return {"connected": True, "account": account.as_dict()}


def list_posts(
    db: DbClient, identity: Optional[Identity], source: Optional[SocialSource] = None
) -> list[SocialPostRecord]:
    if identity is None:
        return []
    return db.list_social_posts(identity.subject, source=source)


def disconnect(db: DbClient, identity: Identity) -> int:
    """Drop the user's Meta account and everything synced from it."""
    if not db.delete_meta_account(identity.subject):
        raise NotFound("No Meta account found")
    deleted = db.delete_social_posts(identity.subject)
    logger.info("Disconnected Meta account for %s (%d posts)", identity.subject, deleted)
    return deleted


def refresh_token_if_needed(
    db: DbClient, client: MetaGraphClient, account: MetaAccountRecord
) -> MetaAccountRecord:
    now = now_ms()
    if not account.token_expires_at or account.token_expires_at > now + TOKEN_REFRESH_WINDOW_MS:
        return account
    token, expires_at = client.exchange_long_lived(account.long_lived_user_token)
    logger.info("Refreshed Facebook token for %s", account.user_id)
    return db.save_meta_account(
        replace(
            account,
            long_lived_user_token=token,
            token_expires_at=expires_at,
            updated_at=now,
        )
    )


def _store_instagram_media(
    db: DbClient, account: MetaAccountRecord, items: list[dict]
) -> int:
    page_id = account.connected_pages[0]["page_id"] if account.connected_pages else None
    for item in items:
        db.upsert_social_post(
            SocialPostRecord(
                user_id=account.user_id,
                source=SocialSource.INSTAGRAM,
                external_id=item["id"],
                page_id=page_id,
                caption=item.get("caption"),
                media_type=item.get("media_type"),
                media_url=item.get("media_url"),
                permalink=item.get("permalink"),
                posted_at=_parse_graph_time(item.get("timestamp")),
            )
        )
    return len(items)


def _store_page_posts(
    db: DbClient, account: MetaAccountRecord, page_id: str, items: list[dict]
) -> int:
    for item in items:
        db.upsert_social_post(
            SocialPostRecord(
                user_id=account.user_id,
                source=SocialSource.FACEBOOK,
                external_id=item["id"],
                page_id=page_id,
                caption=item.get("message"),
                media_url=item.get("full_picture"),
                permalink=item.get("permalink_url"),
                posted_at=_parse_graph_time(item.get("created_time")),
            )
        )
    return len(items)


def sync_account(
    db: DbClient, client: MetaGraphClient, account: MetaAccountRecord, limit: int
) -> int:
    """
    Fetch the most recent Instagram media and Page posts for one account.

    A failing source is logged and skipped so the others still sync.
    Returns the number of posts stored.
    """
    try:
        account = refresh_token_if_needed(db, client, account)
    except MetaApiError as exc:
        # The current token is still good until it expires.
        logger.warning(
            "Failed to refresh Facebook token for user %s: %s", account.user_id, exc
        )
    stored = 0

    if account.instagram_business_account_id:
        try:
            media = client.list_instagram_media(
                account.instagram_business_account_id,
                account.long_lived_user_token,
                limit,
            )
            stored += _store_instagram_media(db, account, media)
        except MetaApiError as exc:
            logger.warning(
                "Failed to sync Instagram content for user %s: %s", account.user_id, exc
            )

    for page in account.connected_pages:
        token = page.get("page_access_token") or account.long_lived_user_token
        try:
            posts = client.list_page_posts(page["page_id"], token, limit)
            stored += _store_page_posts(db, account, page["page_id"], posts)
        except MetaApiError as exc:
            logger.warning(
                "Failed to sync Facebook content for page %s: %s", page["page_id"], exc
            )
    return stored


def sync_user(
    db: DbClient, identity: Identity, client: Optional[MetaGraphClient], limit: int
) -> int:
    client = _require_client(client)
    account = db.get_meta_account(identity.subject)
    if not account:
        raise NotFound("No Meta account found. Please connect Facebook first.")
    return sync_account(db, client, account, limit)


def scheduled_content_sync(
    db: DbClient, client: Optional[MetaGraphClient], limit: int
) -> int:
    """Sync every connected account. Returns the total number of posts stored."""
    if client is None:
        logger.warning("Skipping content sync: Meta app credentials are not configured")
        return 0

    logger.info("Starting scheduled content sync")
    total = 0
    for account in db.list_meta_accounts():
        try:
            total += sync_account(db, client, account, limit)
        except Exception:
            logger.exception("Failed to sync content for user %s", account.user_id)
    logger.info("Completed scheduled content sync (%d posts)", total)
    return total
