from datetime import datetime, timezone
from typing import Optional
from azure.cosmos import exceptions
from sessionbook.configuration.database import CosmosStore
from sessionbook.models.mod_availability import TrainerAvailability

class AvailabilityRepository:
    """One availability document per trainer, keyed by the trainer id."""

    @staticmethod
    def get(db: CosmosStore, trainer_id: str) -> Optional[TrainerAvailability]:
        try:
            item = db.availabilities.read_item(item=trainer_id, partition_key=trainer_id)
        except exceptions.CosmosResourceNotFoundError:
            return None
        return TrainerAvailability.model_validate(item)

    @staticmethod
    def save(db: CosmosStore, availability: TrainerAvailability) -> TrainerAvailability:
        availability.id = availability.trainer_id
        availability.updated_at = datetime.now(timezone.utc)
        availability.blackout_dates = sorted(set(availability.blackout_dates))
        db.availabilities.upsert_item(body=availability.model_dump(mode="json"))
        return availability
