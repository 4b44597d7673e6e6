"""
Helpers shared by the API tests.
"""

from __future__ import annotations

import unittest

import jwt
from fastapi.testclient import TestClient

from servicehub.app import create_app
from servicehub.config import get_settings
from servicehub.db import InMemoryDbClient, now_ms
from servicehub.dependencies import get_db_client

DAY_MS = 24 * 60 * 60 * 1000


def make_token(user_id: str, **claims) -> str:
    settings = get_settings()
    return jwt.encode(
        {"sub": user_id, **claims}, settings.jwt_secret, algorithm=settings.jwt_algorithm
    )


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def tomorrow(hours: int = 0) -> int:
    return now_ms() + DAY_MS + hours * 60 * 60 * 1000


class ApiTestCase(unittest.TestCase):
    """TestClient over a fresh in-memory database for every test."""

    def setUp(self):
        self.db = InMemoryDbClient()
        self.app = create_app()
        self.app.dependency_overrides[get_db_client] = lambda: self.db
        self.client = TestClient(self.app)

    def create_profile(self, user_id: str, user_type: str, **fields) -> dict:
        payload = {"name": fields.pop("name", user_id.title()), "user_type": user_type}
        payload.update(fields)
        response = self.client.post("/api/profiles", json=payload, headers=auth(user_id))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()
