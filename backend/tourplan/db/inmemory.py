"""In-memory implementations of repository interfaces."""

import uuid
from datetime import datetime

from backend.tourplan.models.common import PreferenceScores
from backend.tourplan.models.tour_plan import SavedTrip, TripSpec


class InMemoryTripRepository:
    """In-memory implementation of TripRepository."""

    def __init__(self) -> None:
        self._trips: dict[str, SavedTrip] = {}

    async def create_trip(self, spec: TripSpec) -> SavedTrip:
        """Persist a new trip."""
        trip = SavedTrip(
            **spec.model_dump(),
            trip_id=str(uuid.uuid4()),
            created_at=datetime.now(),
        )
        self._trips[trip.trip_id] = trip
        return trip


class InMemoryPreferencesRepository:
    """In-memory implementation of PreferencesRepository."""

    def __init__(self) -> None:
        self._scores: dict[str, PreferenceScores] = {}

    async def get_scores(self, user_id: str) -> PreferenceScores | None:
        """Get stored scores."""
        return self._scores.get(user_id)

    async def save_scores(self, user_id: str, scores: PreferenceScores) -> None:
        """Store scores."""
        self._scores[user_id] = scores
