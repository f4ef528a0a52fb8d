"""Error taxonomy shared by the identity, generation and storage layers.

Every family exposes a ``kind`` enum so callers can match on a closed set of
failures instead of inspecting provider error strings.
"""
from __future__ import annotations

from enum import Enum


class GenerationErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    MALFORMED_RESPONSE = "malformed_response"
    PROVIDER_UNAVAILABLE = "provider_unavailable"


class StoreErrorKind(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    PERMISSION_DENIED = "permission_denied"
    INDEX_MISSING = "index_missing"
    UNAVAILABLE = "unavailable"


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    CONFIGURATION = "configuration"
    EMAIL_ALREADY_IN_USE = "email_already_in_use"
    WEAK_PASSWORD = "weak_password"
    UNAVAILABLE = "unavailable"


class WanderError(Exception):
    """Base class for every error raised by the application."""


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class GenerationError(WanderError):
    """Itinerary generation failed; always surfaced to the user."""

    kind: GenerationErrorKind
    user_message: str = "Failed to generate itinerary. Please try again."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message


class MissingCredentialError(GenerationError):
    kind = GenerationErrorKind.MISSING_CREDENTIAL
    user_message = (
        "Gemini API key is missing. Set GEMINI_API_KEY in the environment and restart the server."
    )


class InvalidCredentialError(GenerationError):
    kind = GenerationErrorKind.INVALID_CREDENTIAL
    user_message = "Invalid Gemini API key. Please check your configuration in .env"


class MalformedResponseError(GenerationError):
    kind = GenerationErrorKind.MALFORMED_RESPONSE
    user_message = "The AI returned an itinerary we could not read. Please try again."


class ProviderUnavailableError(GenerationError):
    kind = GenerationErrorKind.PROVIDER_UNAVAILABLE
    user_message = "The itinerary service is unavailable right now. Please try again."


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class StoreError(WanderError):
    """The document store rejected or failed an operation."""

    kind: StoreErrorKind


class NotAuthenticatedError(StoreError):
    kind = StoreErrorKind.NOT_AUTHENTICATED


class PermissionDeniedError(StoreError):
    kind = StoreErrorKind.PERMISSION_DENIED


class IndexMissingError(StoreError):
    kind = StoreErrorKind.INDEX_MISSING


class StoreUnavailableError(StoreError):
    kind = StoreErrorKind.UNAVAILABLE


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class AuthError(WanderError):
    """Sign-in or sign-up was rejected by the identity provider."""

    kind: AuthErrorKind
    user_message: str = "Authentication failed. Please check your credentials."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message


class InvalidCredentialsError(AuthError):
    kind = AuthErrorKind.INVALID_CREDENTIALS
    user_message = "Invalid email or password."


class AuthConfigurationError(AuthError):
    kind = AuthErrorKind.CONFIGURATION
    user_message = (
        "Setup required: enable 'Email/Password' in Firebase Console > Authentication > Sign-in method."
    )


class EmailAlreadyInUseError(AuthError):
    kind = AuthErrorKind.EMAIL_ALREADY_IN_USE
    user_message = "This email is already registered. Please sign in instead."


class WeakPasswordError(AuthError):
    kind = AuthErrorKind.WEAK_PASSWORD
    user_message = "Password should be at least 6 characters."


class AuthUnavailableError(AuthError):
    kind = AuthErrorKind.UNAVAILABLE
    user_message = "The sign-in service is unavailable right now. Please try again."


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


class SubmissionInProgressError(WanderError):
    """A new submission arrived while another pipeline run is still in flight."""
