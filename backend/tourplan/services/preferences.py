"""Per-user preference scores used to bias tour plan generation."""

import logging

from pydantic import ValidationError

from backend.tourplan.db.repositories import PreferencesRepository
from backend.tourplan.errors import ValidationFailed
from backend.tourplan.models.common import PreferenceScores
from backend.tourplan.models.preferences import PreferenceScoresUpdate

logger = logging.getLogger(__name__)


class PreferencesService:
    """Reads and updates preference scores, creating defaults on first access."""

    def __init__(self, repository: PreferencesRepository) -> None:
        self._repository = repository

    async def find_scores(self, user_id: str) -> PreferenceScores | None:
        """Stored scores without creating defaults; None if the user has none."""
        return await self._repository.get_scores(user_id)

    async def get_scores(self, user_id: str) -> PreferenceScores:
        """Get a user's scores, storing the defaults if none exist yet."""
        scores = await self._repository.get_scores(user_id)
        if scores is None:
            scores = PreferenceScores()
            await self._repository.save_scores(user_id, scores)
            logger.info(f"Created default preference scores for user {user_id}")
        return scores

    async def update_scores(
        self, user_id: str, update: PreferenceScoresUpdate | dict[str, float]
    ) -> PreferenceScores:
        """Apply a partial update; omitted scores keep their current value.

        Raises:
            ValidationFailed: A score is outside [0, 1]
        """
        try:
            if isinstance(update, dict):
                update = PreferenceScoresUpdate.model_validate(update)
            current = await self.get_scores(user_id)
            merged = PreferenceScores.model_validate(
                {**current.model_dump(), **update.model_dump(exclude_none=True)}
            )
        except ValidationError as e:
            raise ValidationFailed("Preference scores must be between 0 and 1") from e

        await self._repository.save_scores(user_id, merged)
        return merged
