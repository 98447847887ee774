"""Repository protocol interfaces for data access."""

from typing import Protocol

from backend.tourplan.models.common import PreferenceScores
from backend.tourplan.models.tour_plan import SavedTrip, TripSpec


class TripRepository(Protocol):
    """Repository for trips materialized from accepted tour plans."""

    async def create_trip(self, spec: TripSpec) -> SavedTrip:
        """Persist a new trip.

        Args:
            spec: Trip fields derived from an accepted plan

        Returns:
            Saved trip with its assigned id and creation time

        Raises:
            PersistenceError: Store rejected or failed the write
        """
        ...


class PreferencesRepository(Protocol):
    """Repository for per-user preference scores."""

    async def get_scores(self, user_id: str) -> PreferenceScores | None:
        """Get stored scores, or None if the user has none yet."""
        ...

    async def save_scores(self, user_id: str, scores: PreferenceScores) -> None:
        """Store scores, replacing any previous value."""
        ...
