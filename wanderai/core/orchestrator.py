"""Submission pipeline: generate, enrich with weather, persist to history.

The pipeline is strictly sequential. Generation is load-bearing and is the
only step that can end a run in ``ERRORED``; weather enrichment and
persistence are best-effort and never hide a generated itinerary.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Protocol

from wanderai.core.errors import (
    AuthError,
    GenerationError,
    GenerationErrorKind,
    StoreError,
    SubmissionInProgressError,
)
from wanderai.core.schemas import Coordinates, GenerationRequest, Itinerary, Principal, Session, Weather
from wanderai.services.identity import IdentityProvider

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    ENRICHING = "enriching"
    PERSISTING = "persisting"
    DONE = "done"
    ERRORED = "errored"


class ViewState(str, Enum):
    AUTH = "auth"
    DASHBOARD = "dashboard"
    HISTORY = "history"


IN_FLIGHT_STAGES = frozenset(
    {PipelineStage.GENERATING, PipelineStage.ENRICHING, PipelineStage.PERSISTING}
)


class Generator(Protocol):
    async def generate(self, destination: str, days: int, interests: str) -> Itinerary: ...


class WeatherSource(Protocol):
    async def fetch_weather(self, coordinates: Coordinates) -> Optional[Weather]: ...


class HistoryStore(Protocol):
    async def save(
        self,
        principal: Optional[Principal],
        prompt: str,
        itinerary: Itinerary,
        weather: Optional[Weather] = None,
    ) -> Session: ...

    async def list_by_owner(self, principal: Optional[Principal]) -> List[Session]: ...


@dataclass(frozen=True)
class PipelineSnapshot:
    """Immutable view of the orchestrator state handed to the presentation layer."""

    stage: PipelineStage = PipelineStage.IDLE
    view: ViewState = ViewState.DASHBOARD
    request: Optional[GenerationRequest] = None
    itinerary: Optional[Itinerary] = None
    weather: Optional[Weather] = None
    error: Optional[str] = None
    error_kind: Optional[GenerationErrorKind] = None
    session: Optional[Session] = None

    @property
    def loading(self) -> bool:
        return self.stage in IN_FLIGHT_STAGES


class TripOrchestrator:
    """Runs one submission at a time through generation, enrichment and persistence.

    The orchestrator keeps its own subscription to the identity stream and
    reads the principal at the moment of persistence, so a sign-out or
    account switch mid-run is honoured instead of saving under a stale user.
    """

    def __init__(
        self,
        *,
        generator: Generator,
        weather: WeatherSource,
        store: HistoryStore,
        identity: IdentityProvider,
    ) -> None:
        self.generator = generator
        self.weather = weather
        self.store = store
        self.identity = identity
        self._principal: Optional[Principal] = None
        self._state = PipelineSnapshot()
        self._in_flight = False
        self._subscription = identity.subscribe(self._on_principal_change)

    def _on_principal_change(self, principal: Optional[Principal]) -> None:
        self._principal = principal

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def snapshot(self) -> PipelineSnapshot:
        return self._state

    def show(self, view: ViewState) -> PipelineSnapshot:
        """Switch the active view without touching the pipeline."""

        self._state = replace(self._state, view=view)
        return self._state

    def _advance(self, stage: PipelineStage, **changes) -> None:
        logger.debug(f"Pipeline stage {self._state.stage.value} -> {stage.value}")
        self._state = replace(self._state, stage=stage, **changes)

    async def submit(self, request: GenerationRequest) -> PipelineSnapshot:
        """Run the pipeline for ``request`` and return the final snapshot.

        Raises:
            SubmissionInProgressError: another submission has not finished yet.
        """

        if self._in_flight:
            raise SubmissionInProgressError("An itinerary is already being generated.")
        self._in_flight = True
        try:
            return await self._run(request)
        finally:
            self._in_flight = False

    async def _run(self, request: GenerationRequest) -> PipelineSnapshot:
        self._state = PipelineSnapshot(
            stage=PipelineStage.GENERATING,
            view=ViewState.DASHBOARD,
            request=request,
        )

        try:
            itinerary = await self.generator.generate(request.destination, request.days, request.interests)
        except GenerationError as exc:
            logger.error(f"Itinerary generation failed ({exc.kind.value}): {exc}")
            self._advance(PipelineStage.ERRORED, error=exc.user_message, error_kind=exc.kind)
            return self._state

        self._advance(PipelineStage.ENRICHING, itinerary=itinerary)
        weather = await self._enrich(itinerary)
        if weather is None:
            logger.warning(f"Continuing without weather for {itinerary.destination}")

        self._advance(PipelineStage.PERSISTING, weather=weather)
        session = await self._persist(request, itinerary, weather)

        self._advance(PipelineStage.DONE, session=session)
        return self._state

    async def _enrich(self, itinerary: Itinerary) -> Optional[Weather]:
        try:
            return await self.weather.fetch_weather(itinerary.coordinates)
        except Exception:
            logger.exception(f"Weather lookup failed for {itinerary.destination}")
            return None

    async def _fresh_principal(self) -> Optional[Principal]:
        """The current principal, with its ID token refreshed if it is about to expire."""

        if self._principal is None:
            return None
        try:
            await self.identity.refresh_if_expiring()
        except AuthError as exc:
            logger.warning(f"Could not refresh ID token for {self._principal.uid} ({exc.kind.value}): {exc}")
        return self._principal

    async def _persist(
        self,
        request: GenerationRequest,
        itinerary: Itinerary,
        weather: Optional[Weather],
    ) -> Optional[Session]:
        principal = await self._fresh_principal()
        if principal is None:
            logger.info("No signed-in user; skipping session history")
            return None
        try:
            return await self.store.save(principal, request.prompt, itinerary, weather)
        except StoreError as exc:
            # The itinerary is still shown; only the history entry is lost.
            logger.error(f"Error saving session for {principal.uid} ({exc.kind.value}): {exc}")
        except Exception:
            logger.exception(f"Unexpected error saving session for {principal.uid}")
        return None

    async def history(self) -> List[Session]:
        """Sessions of the current principal, most recent first."""

        return await self.store.list_by_owner(await self._fresh_principal())

    def close(self) -> None:
        self._subscription.cancel()
