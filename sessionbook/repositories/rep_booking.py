from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Tuple
from azure.core import MatchConditions
from azure.cosmos import exceptions
from sessionbook.configuration.database import CosmosStore
from sessionbook.models.mod_booking import ACTIVE_STATUSES, Booking, BookingStatus
from sessionbook.validators.val_errors import ConflictError

class BookingRepository:
    """
    Read and write access to booking documents.

    Dates are stored as ISO strings (YYYY-MM-DD), so range filters on
    `session_date` compare lexically in Cosmos SQL.
    """

    @staticmethod
    def _to_document(booking: Booking) -> dict:
        return booking.model_dump(mode="json")

    @staticmethod
    def _from_document(item: dict) -> Booking:
        booking = Booking.model_validate(item)
        booking.etag = item.get("_etag")
        return booking

    @staticmethod
    def _status_values(statuses: Iterable[BookingStatus]) -> List[str]:
        return [BookingStatus(status).value for status in statuses]

    @staticmethod
    def _query(db: CosmosStore, query: str, parameters: list) -> List[Booking]:
        items = db.bookings.query_items(
            query=query,
            parameters=parameters,
            enable_cross_partition_query=True,
        )
        return [BookingRepository._from_document(item) for item in items]

    @staticmethod
    def get(db: CosmosStore, booking_id: str) -> Optional[Booking]:
        bookings = BookingRepository._query(
            db,
            'SELECT * FROM c WHERE c.id = @id',
            [{"name": "@id", "value": booking_id}],
        )
        return bookings[0] if bookings else None

    @staticmethod
    def create(db: CosmosStore, booking: Booking) -> Booking:
        created = db.bookings.create_item(body=BookingRepository._to_document(booking))
        booking.etag = created.get("_etag")
        return booking

    @staticmethod
    def save(db: CosmosStore, booking: Booking) -> Booking:
        """
        Write back a booking that was read or created through this repository.

        The replace is conditional on the ETag the booking was loaded with, so
        a caller holding a stale copy gets a ConflictError instead of
        overwriting a concurrent status change. Only a booking that never came
        from storage (no ETag) is upserted unconditionally.
        """
        booking.updated_at = datetime.now(timezone.utc)
        body = BookingRepository._to_document(booking)
        if booking.etag is None:
            saved = db.bookings.upsert_item(body=body)
        else:
            try:
                saved = db.bookings.replace_item(
                    item=booking.id,
                    body=body,
                    etag=booking.etag,
                    match_condition=MatchConditions.IfNotModified,
                )
            except exceptions.CosmosAccessConditionFailedError:
                raise ConflictError(
                    "booking_modified",
                    "The booking was changed by another request, reload it and try again",
                    booking_id=booking.id,
                )
        booking.etag = saved.get("_etag")
        return booking

    @staticmethod
    def delete(db: CosmosStore, booking: Booking) -> None:
        """Only used to undo documents of a recurring batch that never committed"""
        db.bookings.delete_item(item=booking.id, partition_key=booking.id)

    @staticmethod
    def get_trainer_bookings_for_date(
        db: CosmosStore,
        trainer_id: str,
        day: date,
        statuses: Iterable[BookingStatus] = ACTIVE_STATUSES,
    ) -> List[Booking]:
        return BookingRepository._query(
            db,
            'SELECT * FROM c WHERE c.trainer_id = @trainer_id AND c.session_date = @date '
            'AND ARRAY_CONTAINS(@statuses, c.status)',
            [
                {"name": "@trainer_id", "value": trainer_id},
                {"name": "@date", "value": day.isoformat()},
                {"name": "@statuses", "value": BookingRepository._status_values(statuses)},
            ],
        )

    @staticmethod
    def get_trainer_bookings_in_range(
        db: CosmosStore,
        trainer_id: str,
        start: date,
        end: date,
        statuses: Iterable[BookingStatus],
    ) -> List[Booking]:
        return BookingRepository._query(
            db,
            'SELECT * FROM c WHERE c.trainer_id = @trainer_id '
            'AND c.session_date >= @start AND c.session_date <= @end '
            'AND ARRAY_CONTAINS(@statuses, c.status)',
            [
                {"name": "@trainer_id", "value": trainer_id},
                {"name": "@start", "value": start.isoformat()},
                {"name": "@end", "value": end.isoformat()},
                {"name": "@statuses", "value": BookingRepository._status_values(statuses)},
            ],
        )

    @staticmethod
    def get_client_bookings(db: CosmosStore, client_id: str, statuses: Iterable[BookingStatus]) -> List[Booking]:
        return BookingRepository._query(
            db,
            'SELECT * FROM c WHERE c.client_id = @client_id AND ARRAY_CONTAINS(@statuses, c.status) '
            'ORDER BY c.session_date DESC',
            [
                {"name": "@client_id", "value": client_id},
                {"name": "@statuses", "value": BookingRepository._status_values(statuses)},
            ],
        )

    @staticmethod
    def get_client_bookings_in_range(
        db: CosmosStore,
        client_id: str,
        start: date,
        end: date,
        statuses: Iterable[BookingStatus],
    ) -> List[Booking]:
        return BookingRepository._query(
            db,
            'SELECT * FROM c WHERE c.client_id = @client_id '
            'AND c.session_date >= @start AND c.session_date <= @end '
            'AND ARRAY_CONTAINS(@statuses, c.status)',
            [
                {"name": "@client_id", "value": client_id},
                {"name": "@start", "value": start.isoformat()},
                {"name": "@end", "value": end.isoformat()},
                {"name": "@statuses", "value": BookingRepository._status_values(statuses)},
            ],
        )

    @staticmethod
    def get_bookings_with_refund_status(db: CosmosStore, refund_statuses: Iterable[str]) -> List[Booking]:
        return BookingRepository._query(
            db,
            'SELECT * FROM c WHERE c.status = @status AND ARRAY_CONTAINS(@refund_statuses, c.cancellation.refund_status)',
            [
                {"name": "@status", "value": BookingStatus.CANCELLED.value},
                {"name": "@refund_statuses", "value": list(refund_statuses)},
            ],
        )

    @staticmethod
    def search(
        db: CosmosStore,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Booking], int]:
        """Filtered, newest-first page of bookings plus the total match count"""
        clauses = []
        parameters = []
        if trainer_id:
            clauses.append("c.trainer_id = @trainer_id")
            parameters.append({"name": "@trainer_id", "value": trainer_id})
        if client_id:
            clauses.append("c.client_id = @client_id")
            parameters.append({"name": "@client_id", "value": client_id})
        if status:
            clauses.append("c.status = @status")
            parameters.append({"name": "@status", "value": BookingStatus(status).value})
        if start and end:
            clauses.append("c.session_date >= @start AND c.session_date <= @end")
            parameters.append({"name": "@start", "value": start.isoformat()})
            parameters.append({"name": "@end", "value": end.isoformat()})
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        count_items = list(db.bookings.query_items(
            query=f"SELECT VALUE COUNT(1) FROM c{where}",
            parameters=parameters,
            enable_cross_partition_query=True,
        ))
        total = count_items[0] if count_items else 0

        page_parameters = parameters + [
            {"name": "@offset", "value": (page - 1) * limit},
            {"name": "@limit", "value": limit},
        ]
        bookings = BookingRepository._query(
            db,
            f"SELECT * FROM c{where} ORDER BY c.session_date DESC OFFSET @offset LIMIT @limit",
            page_parameters,
        )
        return bookings, total
