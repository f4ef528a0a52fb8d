"""Pytest configuration and shared fakes for the WanderAI project."""
from __future__ import annotations

import itertools
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

import httpx
import pytest

# Ensure the project root is on sys.path so that import wanderai works under pytest.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wanderai.services.firestore.codec import decode_fields  # noqa: E402
from wanderai.services.firestore.client import SessionStore  # noqa: E402
from wanderai.services.identity.client import IdentityProvider  # noqa: E402


def _error(status_code: int, message: str, status: str = "") -> httpx.Response:
    body: Dict[str, Any] = {"error": {"code": status_code, "message": message}}
    if status:
        body["error"]["status"] = status
    return httpx.Response(status_code, json=body)


class FakeFirebase:
    """In-memory stand-in for Firebase Auth and Firestore REST endpoints.

    Firestore requests are checked the way the deployed ``firestore.rules``
    would check them: the bearer token's uid must match ``userId`` on create,
    and owner queries may only ask for the caller's own uid.
    """

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.expired_tokens: set = set()
        self.token_lifetime = 3600
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.email_password_enabled = True
        self.index_ready = True
        self.firestore_down = False
        self._ids = itertools.count(1)

    # -- helpers -----------------------------------------------------------

    def issue_token(self, uid: str) -> str:
        token = f"token-{uid}-{next(self._ids)}"
        self.tokens[token] = uid
        return token

    def issue_refresh_token(self, uid: str) -> str:
        token = f"refresh-{uid}-{next(self._ids)}"
        self.refresh_tokens[token] = uid
        return token

    def expire(self, token: str) -> None:
        self.expired_tokens.add(token)

    def register(self, email: str, password: str, display_name: Optional[str] = None) -> str:
        uid = f"uid-{next(self._ids)}"
        self.accounts[email] = {
            "localId": uid,
            "email": email,
            "password": password,
            "displayName": display_name,
            "createdAt": "1700000000000",
        }
        return uid

    def account_by_uid(self, uid: str) -> Dict[str, Any]:
        return next(account for account in self.accounts.values() if account["localId"] == uid)

    def sessions_for(self, uid: str) -> List[Dict[str, Any]]:
        return [fields for fields in self.documents.values() if decode_fields(fields)["userId"] == uid]

    def paths(self, host_fragment: str = "") -> List[str]:
        return [path for host, path in self.requests if host_fragment in host]

    # -- transport -----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.url.host, request.url.path))
        if "identitytoolkit" in request.url.host:
            return self._auth(request)
        if "securetoken" in request.url.host:
            return self._secure_token(request)
        if "firestore" in request.url.host:
            return self._firestore(request)
        return httpx.Response(404)

    def _tokens_response(self, account: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "localId": account["localId"],
            "email": account["email"],
            "displayName": account["displayName"] or "",
            "idToken": self.issue_token(account["localId"]),
            "refreshToken": self.issue_refresh_token(account["localId"]),
            "expiresIn": str(self.token_lifetime),
        }

    def _auth(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        path = request.url.path
        if not self.email_password_enabled and (path.endswith("accounts:signUp") or path.endswith("accounts:signInWithPassword")):
            return _error(400, "CONFIGURATION_NOT_FOUND")

        if path.endswith("accounts:signUp"):
            if body["email"] in self.accounts:
                return _error(400, "EMAIL_EXISTS")
            if len(body["password"]) < 6:
                return _error(400, "WEAK_PASSWORD : Password should be at least 6 characters")
            self.register(body["email"], body["password"])
            return httpx.Response(200, json=self._tokens_response(self.accounts[body["email"]]))

        if path.endswith("accounts:signInWithPassword"):
            account = self.accounts.get(body["email"])
            if account is None or account["password"] != body["password"]:
                return _error(400, "INVALID_LOGIN_CREDENTIALS")
            return httpx.Response(200, json=self._tokens_response(account))

        uid = self.tokens.get(body.get("idToken", ""))
        if uid is None:
            return _error(400, "INVALID_ID_TOKEN")
        account = self.account_by_uid(uid)

        if path.endswith("accounts:update"):
            account["displayName"] = body["displayName"]
            return httpx.Response(200, json=self._tokens_response(account))

        if path.endswith("accounts:lookup"):
            info = {key: account[key] for key in ("localId", "email", "displayName", "createdAt")}
            return httpx.Response(200, json={"users": [info]})

        return httpx.Response(404)

    def _secure_token(self, request: httpx.Request) -> httpx.Response:
        form = dict(parse_qsl(request.content.decode()))
        uid = self.refresh_tokens.get(form.get("refresh_token", ""))
        if form.get("grant_type") != "refresh_token" or uid is None:
            return _error(400, "INVALID_REFRESH_TOKEN")
        return httpx.Response(
            200,
            json={
                "expires_in": str(self.token_lifetime),
                "token_type": "Bearer",
                "refresh_token": form["refresh_token"],
                "id_token": self.issue_token(uid),
                "user_id": uid,
                "project_id": "demo",
            },
        )

    def _firestore(self, request: httpx.Request) -> httpx.Response:
        if self.firestore_down:
            return _error(503, "The service is currently unavailable.", "UNAVAILABLE")

        auth = request.headers.get("Authorization", "")
        token = auth.removeprefix("Bearer ")
        uid = self.tokens.get(token)
        if uid is None or token in self.expired_tokens:
            return _error(401, "Missing or invalid authentication.", "UNAUTHENTICATED")

        body = json.loads(request.content or b"{}")
        path = request.url.path

        if path.endswith("/documents/sessions"):
            fields = body["fields"]
            if decode_fields(fields).get("userId") != uid:
                return _error(403, "Missing or insufficient permissions.", "PERMISSION_DENIED")
            doc_id = f"sess{next(self._ids)}"
            self.documents[doc_id] = fields
            return httpx.Response(
                200,
                json={
                    "name": f"projects/demo/databases/(default)/documents/sessions/{doc_id}",
                    "fields": fields,
                    "createTime": "2026-01-01T00:00:00Z",
                },
            )

        if path.endswith("/documents:runQuery"):
            query = body["structuredQuery"]
            wanted = query["where"]["fieldFilter"]["value"]["stringValue"]
            if wanted != uid:
                return _error(403, "Missing or insufficient permissions.", "PERMISSION_DENIED")
            if not self.index_ready:
                return httpx.Response(
                    400,
                    json=[{"error": {
                        "code": 400,
                        "status": "FAILED_PRECONDITION",
                        "message": "The query requires an index. You can create it here: https://console.firebase.google.com/...",
                    }}],
                )
            owned = [
                (doc_id, fields)
                for doc_id, fields in self.documents.items()
                if decode_fields(fields)["userId"] == uid
            ]
            owned.sort(key=lambda item: decode_fields(item[1])["createdAt"], reverse=True)
            if not owned:
                return httpx.Response(200, json=[{"readTime": "2026-01-01T00:00:00Z"}])
            return httpx.Response(
                200,
                json=[
                    {
                        "document": {
                            "name": f"projects/demo/databases/(default)/documents/sessions/{doc_id}",
                            "fields": fields,
                        },
                        "readTime": "2026-01-01T00:00:00Z",
                    }
                    for doc_id, fields in owned
                ],
            )

        return httpx.Response(404)


def make_itinerary_payload(days: int = 3, destination: str = "Tokyo") -> Dict[str, Any]:
    """Return a model-shaped itinerary dictionary with ``days`` entries."""

    return {
        "destination": destination,
        "coordinates": {"lat": 35.6762, "lng": 139.6503},
        "summary": "Temples by morning, ramen by night. A compact trip through old and new Tokyo.",
        "days": [
            {
                "dayTitle": f"Day {index + 1}: Historical Walk",
                "activities": [
                    {
                        "time": "9:00 AM",
                        "activity": "Senso-ji Temple",
                        "description": "Explore Tokyo's oldest temple in Asakusa.",
                        "emoji": "⛩️",
                    },
                    {
                        "time": "7:00 PM",
                        "activity": "Ramen Dinner",
                        "description": "Tonkotsu ramen in a tiny counter shop.",
                        "emoji": "🍜",
                    },
                ],
            }
            for index in range(days)
        ],
    }


@pytest.fixture
def fake_firebase() -> FakeFirebase:
    return FakeFirebase()


@pytest.fixture
def firebase_client(fake_firebase: FakeFirebase) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_firebase.handler))


@pytest.fixture
def identity(firebase_client: httpx.AsyncClient) -> IdentityProvider:
    return IdentityProvider("test-api-key", client=firebase_client)


@pytest.fixture
def session_store(firebase_client: httpx.AsyncClient) -> SessionStore:
    return SessionStore("demo", client=firebase_client)


@pytest.fixture
def itinerary_payload() -> Callable[..., Dict[str, Any]]:
    return make_itinerary_payload


def weather_transport(
    *,
    status_code: int = 200,
    body: Optional[Any] = None,
    error: Optional[Exception] = None,
    seen: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    """Mock Open-Meteo transport answering every request the same way."""

    payload = body if body is not None else {
        "latitude": 35.7,
        "longitude": 139.7,
        "current": {"temperature_2m": 22, "weather_code": 1, "wind_speed_10m": 10},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if error is not None:
            raise error
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def make_weather_transport() -> Callable[..., httpx.MockTransport]:
    return weather_transport
