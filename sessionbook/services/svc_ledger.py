from datetime import date, datetime
from typing import Optional
from azure.core import MatchConditions
from azure.cosmos import exceptions
from sessionbook.configuration.config import Config
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_interval import TimeInterval
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.validators.val_errors import ConflictError

class SlotLedgerService:
    """
    Storage-level guard against double booking.

    One ledger document per (trainer, date) holds the intervals of that
    trainer's pending and confirmed bookings. Every change is a
    read-check-replace guarded by the document's ETag, so two writers racing
    for overlapping time on the same day cannot both commit: the loser gets
    HTTP 412, re-reads, and sees the winner's reservation.
    """

    @staticmethod
    def _ledger_id(trainer_id: str, day: date) -> str:
        return f"{trainer_id}:{day.isoformat()}"

    @staticmethod
    def _read(db: CosmosStore, trainer_id: str, day: date) -> Optional[dict]:
        try:
            return db.ledgers.read_item(
                item=SlotLedgerService._ledger_id(trainer_id, day),
                partition_key=trainer_id,
            )
        except exceptions.CosmosResourceNotFoundError:
            return None

    @staticmethod
    def _body(doc: dict) -> dict:
        """Strip Cosmos system properties before writing back"""
        return {key: value for key, value in doc.items() if not key.startswith("_")}

    @staticmethod
    def _interval(reservation: dict) -> TimeInterval:
        return TimeInterval(
            start=datetime.fromisoformat(reservation["start"]),
            end=datetime.fromisoformat(reservation["end"]),
        )

    @staticmethod
    def _is_stale(db: CosmosStore, booking_id: str) -> bool:
        """
        A reservation whose booking is already cancelled or completed.

        Left behind when a release failed after the status change was saved.
        A reservation without a booking document is never stale: that
        booking may still be in the middle of being written.
        """
        booking = BookingRepository.get(db, booking_id)
        return booking is not None and not booking.is_active

    @staticmethod
    def reserve(db: CosmosStore, trainer_id: str, day: date, booking_id: str, interval: TimeInterval) -> None:
        """Atomically add a reservation, raising ConflictError if it overlaps another one"""
        with start_span("ledger_reserve", attributes={"trainer_id": trainer_id, "date": day.isoformat()}):
            reservation = {
                "booking_id": booking_id,
                "start": interval.start.isoformat(),
                "end": interval.end.isoformat(),
            }
            for attempt in range(Config.LEDGER_MAX_RETRIES):
                doc = SlotLedgerService._read(db, trainer_id, day)
                if doc is None:
                    try:
                        db.ledgers.create_item(body={
                            "id": SlotLedgerService._ledger_id(trainer_id, day),
                            "trainer_id": trainer_id,
                            "date": day.isoformat(),
                            "reservations": [reservation],
                        })
                        return
                    except exceptions.CosmosResourceExistsError:
                        continue

                others = []
                for existing in doc.get("reservations", []):
                    if existing["booking_id"] == booking_id:
                        continue
                    if interval.overlaps(SlotLedgerService._interval(existing)):
                        if SlotLedgerService._is_stale(db, existing["booking_id"]):
                            log_event("Pruning stale ledger reservation", {
                                "trainer_id": trainer_id,
                                "booking_id": existing["booking_id"],
                            })
                            continue
                        log_event("Ledger reservation rejected", {
                            "trainer_id": trainer_id,
                            "date": day.isoformat(),
                            "booking_id": booking_id,
                            "blocking_booking_id": existing["booking_id"],
                        })
                        raise ConflictError(
                            "trainer_unavailable",
                            "The trainer is not available at the requested time",
                            date=day.isoformat(),
                        )
                    others.append(existing)

                body = SlotLedgerService._body(doc)
                body["reservations"] = others + [reservation]
                try:
                    db.ledgers.replace_item(
                        item=body["id"],
                        body=body,
                        etag=doc["_etag"],
                        match_condition=MatchConditions.IfNotModified,
                    )
                    return
                except exceptions.CosmosAccessConditionFailedError:
                    log_event("Ledger write contention, retrying", {
                        "trainer_id": trainer_id,
                        "date": day.isoformat(),
                        "attempt": attempt + 1,
                    })

            raise ConflictError(
                "slot_contention",
                "The trainer's schedule is being changed concurrently, please retry",
                date=day.isoformat(),
            )

    @staticmethod
    def release(db: CosmosStore, trainer_id: str, day: date, booking_id: str) -> bool:
        """
        Remove a booking's reservation. Never raises: callers release after
        their own write has committed, and a leftover reservation is pruned
        by the next `reserve` that runs into it.
        """
        try:
            with start_span("ledger_release", attributes={"trainer_id": trainer_id, "date": day.isoformat()}):
                for _ in range(Config.LEDGER_MAX_RETRIES):
                    doc = SlotLedgerService._read(db, trainer_id, day)
                    if doc is None:
                        return True
                    reservations = doc.get("reservations", [])
                    remaining = [r for r in reservations if r["booking_id"] != booking_id]
                    if len(remaining) == len(reservations):
                        return True

                    body = SlotLedgerService._body(doc)
                    body["reservations"] = remaining
                    try:
                        db.ledgers.replace_item(
                            item=body["id"],
                            body=body,
                            etag=doc["_etag"],
                            match_condition=MatchConditions.IfNotModified,
                        )
                        return True
                    except exceptions.CosmosAccessConditionFailedError:
                        continue
                log_event("Ledger release gave up after retries", {"trainer_id": trainer_id, "booking_id": booking_id})
                return False
        except Exception as e:
            log_exception(e, {
                "operation": "ledger_release",
                "trainer_id": trainer_id,
                "booking_id": booking_id,
            })
            return False
