from unittest.mock import MagicMock

from sessionbook.services.svc_notification import NotificationKind, NotificationService


class TestNotificationService:
    def test_notify_stores_document(self):
        db = MagicMock()

        NotificationService.notify(db, "trainer-1", NotificationKind.BOOKING_CREATED, {"booking_id": "b1"})

        body = db.notifications.create_item.call_args.kwargs["body"]
        assert body["user_id"] == "trainer-1"
        assert body["type"] == "booking_created"
        assert body["payload"] == {"booking_id": "b1"}
        assert body["is_read"] is False

    def test_notify_swallows_storage_errors(self):
        db = MagicMock()
        db.notifications.create_item.side_effect = RuntimeError("cosmos down")

        NotificationService.notify(db, "trainer-1", NotificationKind.BOOKING_CREATED, {})

    def test_emit_inline_without_background_tasks(self):
        db = MagicMock()

        NotificationService.emit(db, None, "client-1", NotificationKind.BOOKING_CONFIRMED, {})

        db.notifications.create_item.assert_called_once()

    def test_emit_defers_to_background_tasks(self):
        db = MagicMock()
        background_tasks = MagicMock()

        NotificationService.emit(db, background_tasks, "client-1", NotificationKind.BOOKING_CONFIRMED, {"x": 1})

        background_tasks.add_task.assert_called_once_with(
            NotificationService.notify, db, "client-1", NotificationKind.BOOKING_CONFIRMED, {"x": 1}
        )
        db.notifications.create_item.assert_not_called()
