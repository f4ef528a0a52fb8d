from typing import List

from wanderai.core.config import ApiSettings
from wanderai.core.orchestrator import TripOrchestrator
from wanderai.services import (
    create_identity_provider,
    create_itinerary_generator,
    create_session_store,
    create_weather_client,
)


class WanderBundle:
    """Container for the pipeline and the service clients it depends on.

    One bundle represents one signed-in front end: it owns the identity
    adapter (and therefore the current principal), the external clients and
    the orchestrator that sequences them.

    Attributes:
        settings: API configuration with external service credentials
        identity: Firebase Authentication adapter
        generator: Gemini itinerary generator
        weather: Open-Meteo weather client
        store: Firestore session store
        orchestrator: Submission pipeline bound to the services above
    """

    def __init__(self, settings: ApiSettings) -> None:
        self.settings = settings
        self.identity = create_identity_provider(settings)
        self.generator = create_itinerary_generator(settings)
        self.weather = create_weather_client(settings)
        self.store = create_session_store(settings)
        self.orchestrator = TripOrchestrator(
            generator=self.generator,
            weather=self.weather,
            store=self.store,
            identity=self.identity,
        )

    def __repr__(self) -> str:
        principal = self.identity.current
        return (
            f"WanderBundle(\n"
            f"  model='{self.generator.model}',\n"
            f"  project='{self.store.project_id}',\n"
            f"  principal={principal.uid if principal else None!r},\n"
            f"  stage={self.orchestrator.snapshot().stage.value!r}\n"
            f")"
        )

    async def close(self) -> None:
        self.orchestrator.close()
        clients: List = [self.identity, self.weather, self.store]
        for client in clients:
            await client.aclose()
