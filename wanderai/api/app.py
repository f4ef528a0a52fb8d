"""FastAPI surface for the WanderAI itinerary pipeline."""
from __future__ import annotations

import os
# Load environment variables from .env file
from dotenv import load_dotenv

# Load .env file before any other imports that might need environment variables
load_dotenv()

import logging
from typing import Dict, List

import sentry_sdk
from fastapi import FastAPI, HTTPException, Response, status
from fastapi.middleware.cors import CORSMiddleware

from wanderai.api.dependencies import get_bundle, lifespan
from wanderai.api.response_builder import _snapshot_to_response
from wanderai.api.schemas import ItineraryRequest, ItineraryResponse, SignInRequest, SignUpRequest
from wanderai.core.errors import AuthError, AuthErrorKind, GenerationErrorKind, SubmissionInProgressError
from wanderai.core.orchestrator import PipelineStage, ViewState
from wanderai.core.schemas import Principal, Session

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

if os.getenv("SENTRY_DSN"):  # pragma: no cover - runtime configuration
    sentry_sdk.init(
        dsn=os.getenv("SENTRY_DSN"),
        enable_logs=True,
        send_default_pii=False,
        traces_sample_rate=1.0,
    )

GENERATION_ERROR_STATUS = {
    GenerationErrorKind.MISSING_CREDENTIAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
    GenerationErrorKind.INVALID_CREDENTIAL: status.HTTP_502_BAD_GATEWAY,
    GenerationErrorKind.MALFORMED_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    GenerationErrorKind.PROVIDER_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

AUTH_ERROR_STATUS = {
    AuthErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.CONFIGURATION: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthErrorKind.EMAIL_ALREADY_IN_USE: status.HTTP_409_CONFLICT,
    AuthErrorKind.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

app = FastAPI(title="WanderAI API", version="0.1.0", lifespan=lifespan)

origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _auth_exception(exc: AuthError) -> HTTPException:
    logger.error(f"Auth error ({exc.kind.value}): {exc.detail}")
    return HTTPException(status_code=AUTH_ERROR_STATUS[exc.kind], detail=exc.user_message)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health endpoint used for readiness checks."""

    return {"status": "healthy", "service": "wanderai-api"}


@app.post("/auth/sign-in", response_model=Principal)
async def sign_in(payload: SignInRequest) -> Principal:
    """Sign in with email and password and make the user the current principal."""

    bundle = get_bundle()
    try:
        return await bundle.identity.sign_in(payload.email, payload.password)
    except AuthError as exc:
        raise _auth_exception(exc) from exc


@app.post("/auth/sign-up", response_model=Principal, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest) -> Principal:
    """Create an account, store its display name and sign it in."""

    bundle = get_bundle()
    try:
        return await bundle.identity.sign_up(payload.email, payload.password, payload.display_name)
    except AuthError as exc:
        raise _auth_exception(exc) from exc


@app.post("/auth/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out() -> Response:
    bundle = get_bundle()
    await bundle.identity.sign_out()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/auth/me", response_model=Principal)
async def current_principal() -> Principal:
    principal = get_bundle().identity.current
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in.")
    return principal


@app.post("/itineraries", response_model=ItineraryResponse)
async def generate_itinerary(payload: ItineraryRequest) -> ItineraryResponse:
    """Generate an itinerary, enrich it with live weather and save it to history.

    Weather and history are best-effort: once generation succeeds the
    itinerary is returned even if either of them failed. Generation failures
    map to an HTTP error whose detail is the user-facing message.

    Example JSON payload:
        ```json
        {"destination": "Tokyo", "days": 3, "interests": "history, food"}
        ```
    """

    logger.info(f"Itinerary request: {payload.destination}, {payload.days} days")
    bundle = get_bundle()
    try:
        snapshot = await bundle.orchestrator.submit(payload)
    except SubmissionInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    if snapshot.stage is PipelineStage.ERRORED:
        raise HTTPException(status_code=GENERATION_ERROR_STATUS[snapshot.error_kind], detail=snapshot.error)
    return _snapshot_to_response(snapshot)


@app.get("/itineraries/state", response_model=ItineraryResponse)
async def itinerary_state() -> ItineraryResponse:
    """Return the latest pipeline snapshot (useful for polling while loading)."""

    return _snapshot_to_response(get_bundle().orchestrator.snapshot())


@app.get("/sessions", response_model=List[Session])
async def list_sessions() -> List[Session]:
    """Trip history of the signed-in user, most recent first."""

    bundle = get_bundle()
    if bundle.identity.current is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in.")
    bundle.orchestrator.show(ViewState.HISTORY)
    return await bundle.orchestrator.history()
