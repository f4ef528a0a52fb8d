"""Session history persisted in Cloud Firestore through its REST API.

Requests carry the principal's ID token so the deployed security rules
(``firestore.rules``) can check ``request.auth.uid`` against the document's
``userId``. Ownership is therefore enforced by the store itself, not only by
this client binding ``userId`` to the caller.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from wanderai.core.config import ApiSettings
from wanderai.core.errors import (
    IndexMissingError,
    NotAuthenticatedError,
    PermissionDeniedError,
    StoreError,
    StoreUnavailableError,
)
from wanderai.core.schemas import Itinerary, Principal, Session, Weather, format_timestamp, utc_now
from wanderai.services.firestore.codec import decode_fields, encode_fields

logger = logging.getLogger(__name__)

FIRESTORE_URL = "https://firestore.googleapis.com/v1"
SESSIONS_COLLECTION = "sessions"


def _error_from_response(response: httpx.Response) -> StoreError:
    """Translate a Firestore error body into the store error taxonomy."""

    try:
        error = response.json()
        if isinstance(error, list):
            error = error[0] if error else {}
        error = error.get("error", {})
    except (ValueError, AttributeError):
        error = {}
    status = error.get("status", "")
    message = error.get("message") or f"HTTP {response.status_code}"

    if status == "PERMISSION_DENIED" or response.status_code == 403:
        return PermissionDeniedError(message)
    if status == "UNAUTHENTICATED" or response.status_code == 401:
        return NotAuthenticatedError(message)
    if status == "FAILED_PRECONDITION":
        return IndexMissingError(message)
    return StoreUnavailableError(message)


def _document_to_session(document: Dict[str, Any]) -> Session:
    doc_id = document["name"].rsplit("/", 1)[-1]
    return Session.model_validate({"id": doc_id, **decode_fields(document.get("fields", {}))})


class SessionStore:
    """Owner-scoped persistence of (prompt, itinerary, weather) sessions."""

    def __init__(
        self,
        project_id: Optional[str],
        *,
        base_url: str = FIRESTORE_URL,
        database: str = "(default)",
        timeout_s: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.project_id = project_id
        self.base_url = base_url.rstrip("/")
        self.database = database
        self._client = client or httpx.AsyncClient(
            headers={"accept": "application/json"},
            timeout=httpx.Timeout(timeout_s, connect=10.0),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTPX client."""

        await self._client.aclose()

    async def __aenter__(self) -> "SessionStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()

    @property
    def documents_url(self) -> str:
        if not self.project_id:
            raise StoreUnavailableError("Missing configuration value: firebase_project_id")
        return f"{self.base_url}/projects/{self.project_id}/databases/{self.database}/documents"

    def _headers(self, principal: Optional[Principal]) -> Dict[str, str]:
        if principal is None or not principal.id_token:
            raise NotAuthenticatedError("User must be logged in to access sessions.")
        return {"Authorization": f"Bearer {principal.id_token}"}

    async def _post(self, url: str, principal: Principal, body: Dict[str, Any]) -> Any:
        headers = self._headers(principal)
        try:
            response = await self._client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"Firestore unreachable: {exc}") from exc
        if response.is_error:
            raise _error_from_response(response)
        try:
            return response.json()
        except ValueError as exc:
            raise StoreUnavailableError(f"Firestore returned a non-JSON body (HTTP {response.status_code})") from exc

    async def save(
        self,
        principal: Optional[Principal],
        prompt: str,
        itinerary: Itinerary,
        weather: Optional[Weather] = None,
    ) -> Session:
        """Persist a new session owned by ``principal``.

        ``userId`` and ``createdAt`` are always assigned here; callers cannot
        attribute a session to anyone but the principal they pass in.

        Raises:
            NotAuthenticatedError: no principal, or the store rejected its token.
            PermissionDeniedError: the security rules rejected the write.
            StoreUnavailableError: transport or configuration failure.
        """

        if principal is None:
            raise NotAuthenticatedError("User must be logged in to save session.")

        created_at = utc_now()
        data: Dict[str, Any] = {
            "userId": principal.uid,
            "prompt": prompt,
            "response": itinerary.model_dump(by_alias=True),
            "createdAt": format_timestamp(created_at),
        }
        if weather is not None:
            data["weather"] = weather.model_dump(by_alias=True)

        logger.info(f"[Firestore] Saving session for verified user: {principal.uid}")
        document = await self._post(
            f"{self.documents_url}/{SESSIONS_COLLECTION}",
            principal,
            {"fields": encode_fields(data)},
        )
        try:
            doc_id = document["name"].rsplit("/", 1)[-1]
        except (KeyError, TypeError, AttributeError) as exc:
            raise StoreUnavailableError(f"Firestore create response has no document name: {document!r}") from exc
        logger.info(f"[Firestore] Success! Document ID: {doc_id}")

        return Session(
            id=doc_id,
            user_id=principal.uid,
            prompt=prompt,
            response=itinerary,
            weather=weather,
            created_at=created_at,
        )

    async def _query_by_owner(self, principal: Principal) -> List[Session]:
        query = {
            "structuredQuery": {
                "from": [{"collectionId": SESSIONS_COLLECTION}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "userId"},
                        "op": "EQUAL",
                        "value": {"stringValue": principal.uid},
                    }
                },
                "orderBy": [{"field": {"fieldPath": "createdAt"}, "direction": "DESCENDING"}],
            }
        }
        rows = await self._post(f"{self.documents_url}:runQuery", principal, query)
        if not isinstance(rows, list):
            raise StoreUnavailableError(f"Unexpected runQuery response: {type(rows).__name__}")
        sessions: List[Session] = []
        for row in rows:
            document = row.get("document") if isinstance(row, dict) else None
            if not isinstance(document, dict):
                continue
            try:
                sessions.append(_document_to_session(document))
            except (KeyError, TypeError, AttributeError, ValueError, ValidationError) as exc:
                logger.warning(f"[Firestore] Skipping unreadable session {document.get('name')}: {exc}")
        return sessions

    async def list_by_owner(self, principal: Optional[Principal]) -> List[Session]:
        """Return the principal's sessions, most recent first.

        Never raises: an absent principal, a missing composite index or any
        other store failure yields an empty list after logging.
        """

        if principal is None:
            logger.warning("list_by_owner called but no user is logged in.")
            return []

        logger.info(f"[Firestore] Querying sessions owned by: {principal.uid}")
        try:
            sessions = await self._query_by_owner(principal)
        except IndexMissingError as exc:
            logger.error(
                f"INDEX MISSING: deploy firestore.indexes.json (userId ASC, createdAt DESC). {exc}"
            )
            return []
        except StoreError as exc:
            logger.error(f"Error fetching sessions ({exc.kind.value}): {exc}")
            return []

        logger.info(f"[Firestore] Loaded {len(sessions)} sessions.")
        return sessions


def create_session_store(settings: ApiSettings) -> SessionStore:
    """Instantiate the session store using project settings."""

    return SessionStore(settings.firebase_project_id)
