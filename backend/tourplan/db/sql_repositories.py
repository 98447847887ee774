"""SQL implementations of repository interfaces."""

import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.tourplan.db.models import Trip, UserPreference
from backend.tourplan.errors import PersistenceError
from backend.tourplan.models.common import PreferenceScores
from backend.tourplan.models.tour_plan import SavedTrip, TripItineraryItem, TripSpec

logger = logging.getLogger(__name__)


def _to_saved_trip(row: Trip) -> SavedTrip:
    return SavedTrip(
        trip_id=row.trip_id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        destinations=list(row.destinations),
        start_date=row.start_date,
        end_date=row.end_date,
        itinerary=[TripItineraryItem.model_validate(item) for item in row.itinerary],
        generated_by=row.generated_by,
        ai_metadata=dict(row.ai_metadata),
        created_at=row.created_at,
    )


class SqlTripRepository:
    """SQL implementation of TripRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_trip(self, spec: TripSpec) -> SavedTrip:
        """Persist a new trip."""
        row = Trip(
            trip_id=str(uuid.uuid4()),
            user_id=spec.user_id,
            title=spec.title,
            description=spec.description,
            destinations=spec.destinations,
            start_date=spec.start_date,
            end_date=spec.end_date,
            itinerary=[item.model_dump(mode="json") for item in spec.itinerary],
            generated_by=spec.generated_by,
            ai_metadata=spec.ai_metadata,
            created_at=datetime.now(),
        )

        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save trip for user {spec.user_id}: {e}")
            raise PersistenceError("Failed to save trip") from e

        return _to_saved_trip(row)


class SqlPreferencesRepository:
    """SQL implementation of PreferencesRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_scores(self, user_id: str) -> PreferenceScores | None:
        """Get stored scores."""
        try:
            async with self._session_factory() as session:
                row = await session.get(UserPreference, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load preferences for user {user_id}: {e}")
            raise PersistenceError("Failed to load preferences") from e

        if row is None:
            return None

        return PreferenceScores(
            history=row.history,
            adventure=row.adventure,
            nature=row.nature,
            relaxation=row.relaxation,
        )

    async def save_scores(self, user_id: str, scores: PreferenceScores) -> None:
        """Store scores."""
        try:
            async with self._session_factory() as session:
                row = await session.get(UserPreference, user_id)
                if row is None:
                    row = UserPreference(user_id=user_id)
                    session.add(row)

                row.history = scores.history
                row.adventure = scores.adventure
                row.nature = scores.nature
                row.relaxation = scores.relaxation
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save preferences for user {user_id}: {e}")
            raise PersistenceError("Failed to save preferences") from e
