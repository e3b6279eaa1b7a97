from enum import Enum
import uuid
from datetime import datetime, timezone
from typing import Optional
from fastapi import BackgroundTasks
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception

class NotificationKind(str, Enum):
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_RESCHEDULED = "booking_rescheduled"
    RECURRING_BOOKING_CREATED = "recurring_booking_created"
    SESSION_COMPLETED = "session_completed"

class NotificationService:
    """In-app notification documents; delivery channels read from this container."""

    @staticmethod
    def notify(db: CosmosStore, user_id: str, kind: NotificationKind, payload: dict) -> None:
        """Best effort: a failed notification is logged and never reaches the caller"""
        try:
            notification = {
                "id": str(uuid.uuid4()),
                "user_id": user_id,
                "type": kind.value,
                "payload": payload,
                "is_read": False,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            db.notifications.create_item(body=notification)
            log_event("Notification stored", {"user_id": user_id, "type": kind.value})
        except Exception as e:
            log_exception(e, {"operation": "notify", "user_id": user_id, "type": kind.value})

    @staticmethod
    def emit(
        db: CosmosStore,
        background_tasks: Optional[BackgroundTasks],
        user_id: str,
        kind: NotificationKind,
        payload: dict,
    ) -> None:
        """Queue a notification after the response, or send inline when no task queue is given"""
        if background_tasks is not None:
            background_tasks.add_task(NotificationService.notify, db, user_id, kind, payload)
        else:
            NotificationService.notify(db, user_id, kind, payload)
