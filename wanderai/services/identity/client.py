"""Identity adapter over the Firebase Authentication REST API.

The adapter is the single writer of the current :class:`Principal`. Every
other component either receives the principal explicitly or keeps its own
:class:`Subscription` to the change stream.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Type

import httpx
from pydantic import ValidationError

from wanderai.core.config import ApiSettings
from wanderai.core.errors import (
    AuthConfigurationError,
    AuthError,
    AuthUnavailableError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    WeakPasswordError,
)
from wanderai.core.schemas import Principal, utc_now
from wanderai.services.identity.schemas import (
    LookupResponse,
    ProfileUpdateResponse,
    RefreshResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1"
MIN_PASSWORD_LENGTH = 6
DEFAULT_TOKEN_LIFETIME_S = 3600
# ID tokens are refreshed this long before they expire.
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)

PrincipalListener = Callable[[Optional[Principal]], None]

_ERROR_CODES: Dict[str, Type[AuthError]] = {
    "INVALID_LOGIN_CREDENTIALS": InvalidCredentialsError,
    "INVALID_PASSWORD": InvalidCredentialsError,
    "EMAIL_NOT_FOUND": InvalidCredentialsError,
    "INVALID_EMAIL": InvalidCredentialsError,
    "USER_DISABLED": InvalidCredentialsError,
    "MISSING_PASSWORD": InvalidCredentialsError,
    "TOKEN_EXPIRED": InvalidCredentialsError,
    "INVALID_REFRESH_TOKEN": InvalidCredentialsError,
    "USER_NOT_FOUND": InvalidCredentialsError,
    "CONFIGURATION_NOT_FOUND": AuthConfigurationError,
    "OPERATION_NOT_ALLOWED": AuthConfigurationError,
    "PASSWORD_LOGIN_DISABLED": AuthConfigurationError,
    "API_KEY_INVALID": AuthConfigurationError,
    "EMAIL_EXISTS": EmailAlreadyInUseError,
    "WEAK_PASSWORD": WeakPasswordError,
}


def _error_from_response(response: httpx.Response) -> AuthError:
    """Translate a Firebase Auth error body into the auth error taxonomy."""

    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        message = ""
    # Messages look like "EMAIL_EXISTS" or "WEAK_PASSWORD : Password should be ..."
    code = re.split(r"[\s:]", message.strip(), maxsplit=1)[0] if message else ""
    error_cls = _ERROR_CODES.get(code)
    if error_cls is None:
        return AuthUnavailableError(f"HTTP {response.status_code}: {message or 'identity provider error'}")
    return error_cls(message)


def _parse_created_at(raw: Optional[str]) -> datetime:
    if not raw:
        return utc_now()
    try:
        return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable account creation time {raw!r}; using current time")
        return utc_now()


def _token_expiry(expires_in: Optional[str]) -> datetime:
    try:
        lifetime = int(expires_in) if expires_in else DEFAULT_TOKEN_LIFETIME_S
    except ValueError:
        lifetime = DEFAULT_TOKEN_LIFETIME_S
    return utc_now() + timedelta(seconds=lifetime)


class Subscription:
    """Cancellation handle for a principal listener; calling it cancels too."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._cancel()

    def __call__(self) -> None:
        self.cancel()


class IdentityProvider:
    """Email/password authentication and the current-principal change stream."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = IDENTITY_TOOLKIT_URL,
        token_url: str = SECURE_TOKEN_URL,
        timeout_s: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.token_url = token_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            headers={"accept": "application/json"},
            timeout=httpx.Timeout(timeout_s, connect=10.0),
        )
        self._current: Optional[Principal] = None
        self._listeners: List[PrincipalListener] = []

    async def aclose(self) -> None:
        """Close the underlying HTTPX client."""

        await self._client.aclose()

    async def __aenter__(self) -> "IdentityProvider":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()

    @property
    def current(self) -> Optional[Principal]:
        """The last principal delivered to subscribers."""

        return self._current

    def subscribe(self, listener: PrincipalListener) -> Subscription:
        """Register ``listener``; it is called now with the current state and on every change."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        subscription = Subscription(_remove)
        self._deliver(listener, self._current)
        return subscription

    def _deliver(self, listener: PrincipalListener, principal: Optional[Principal]) -> None:
        try:
            listener(principal)
        except Exception:
            logger.exception("Principal listener failed")

    def _set_current(self, principal: Optional[Principal]) -> None:
        self._current = principal
        for listener in list(self._listeners):
            self._deliver(listener, principal)

    async def _send(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST to a Firebase Auth endpoint and return the parsed JSON."""

        if not self.api_key:
            raise AuthConfigurationError("Missing configuration value: firebase_api_key")
        try:
            response = await self._client.post(url, params={"key": self.api_key}, json=json, data=data)
        except httpx.HTTPError as exc:
            raise AuthUnavailableError(f"Identity provider unreachable: {exc}") from exc
        if response.is_error:
            raise _error_from_response(response)
        try:
            return response.json()
        except ValueError as exc:
            raise AuthUnavailableError("Identity provider returned a non-JSON body") from exc

    async def _post(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._send(f"{self.base_url}/{endpoint}", json=body)

    async def _lookup_created_at(self, id_token: str) -> datetime:
        data = await self._post("accounts:lookup", {"idToken": id_token})
        try:
            users = LookupResponse.model_validate(data).users
        except ValidationError as exc:
            raise AuthUnavailableError(f"Unexpected account lookup response: {exc}") from exc
        return _parse_created_at(users[0].created_at if users else None)

    async def sign_in(self, email: str, password: str) -> Principal:
        """Authenticate with email and password.

        Raises:
            InvalidCredentialsError: the provider rejected the pair.
            AuthConfigurationError: the project lacks the Email/Password method.
        """

        if not password:
            raise InvalidCredentialsError("Password is required.")

        data = await self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        try:
            tokens = TokenResponse.model_validate(data)
        except ValidationError as exc:
            raise AuthUnavailableError(f"Unexpected sign-in response: {exc}") from exc

        principal = Principal(
            uid=tokens.local_id,
            email=tokens.email or email,
            display_name=Principal.fallback_display_name(tokens.email or email, tokens.display_name),
            created_at=await self._lookup_created_at(tokens.id_token),
            id_token=tokens.id_token,
            refresh_token=tokens.refresh_token,
            token_expires_at=_token_expiry(tokens.expires_in),
        )
        logger.info(f"Signed in user {principal.uid}")
        self._set_current(principal)
        return principal

    async def sign_up(self, email: str, password: str, display_name: str) -> Principal:
        """Create an account and persist ``display_name`` on its profile before returning.

        Raises:
            WeakPasswordError: shorter than six characters, checked before any request.
            EmailAlreadyInUseError: an account with ``email`` already exists.
        """

        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError()

        data = await self._post(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        try:
            tokens = TokenResponse.model_validate(data)
            profile = ProfileUpdateResponse.model_validate(
                await self._post(
                    "accounts:update",
                    {"idToken": tokens.id_token, "displayName": display_name, "returnSecureToken": True},
                )
            )
        except ValidationError as exc:
            raise AuthUnavailableError(f"Unexpected sign-up response: {exc}") from exc

        id_token = profile.id_token or tokens.id_token
        principal = Principal(
            uid=tokens.local_id,
            email=tokens.email or email,
            display_name=Principal.fallback_display_name(email, profile.display_name or display_name),
            created_at=await self._lookup_created_at(id_token),
            id_token=id_token,
            refresh_token=profile.refresh_token or tokens.refresh_token,
            token_expires_at=_token_expiry(profile.expires_in or tokens.expires_in),
        )
        logger.info(f"Registered user {principal.uid}")
        self._set_current(principal)
        return principal

    async def refresh(self) -> Optional[Principal]:
        """Exchange the current refresh token for a new ID token and publish it.

        Returns the current principal, which is unchanged if the user signed
        out or switched accounts while the exchange was in flight.

        Raises:
            InvalidCredentialsError: no refresh token, or the provider revoked it.
        """

        principal = self._current
        if principal is None or not principal.refresh_token:
            raise InvalidCredentialsError("No refresh token for the current user.")

        data = await self._send(
            f"{self.token_url}/token",
            data={"grant_type": "refresh_token", "refresh_token": principal.refresh_token},
        )
        try:
            tokens = RefreshResponse.model_validate(data)
        except ValidationError as exc:
            raise AuthUnavailableError(f"Unexpected token refresh response: {exc}") from exc

        if self._current is not principal:
            logger.info(f"Discarding refreshed token for {principal.uid}; the principal changed")
            return self._current

        refreshed = principal.model_copy(
            update={
                "id_token": tokens.id_token,
                "refresh_token": tokens.refresh_token or principal.refresh_token,
                "token_expires_at": _token_expiry(tokens.expires_in),
            }
        )
        logger.info(f"Refreshed ID token for user {refreshed.uid}")
        self._set_current(refreshed)
        return refreshed

    async def refresh_if_expiring(self) -> Optional[Principal]:
        """Refresh the ID token when it expires within the refresh margin."""

        principal = self._current
        if principal is None or principal.token_expires_at is None:
            return principal
        if utc_now() < principal.token_expires_at - TOKEN_REFRESH_MARGIN:
            return principal
        return await self.refresh()

    async def sign_out(self) -> None:
        """Forget the current principal. Safe to call when already signed out."""

        if self._current is None:
            return
        logger.info(f"Signed out user {self._current.uid}")
        self._set_current(None)


def create_identity_provider(settings: ApiSettings) -> IdentityProvider:
    """Instantiate the identity adapter using project settings."""

    return IdentityProvider(settings.firebase_api_key)
