import random
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from fastapi import BackgroundTasks
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, log_metric, start_span
from sessionbook.models.mod_auth import AuthUser, UserRole
from sessionbook.models.mod_booking import Booking, BookingStatus
from sessionbook.models.mod_package import Package
from sessionbook.repositories.rep_booking import BookingRepository
from sessionbook.schemas.sch_booking import BookingCreate
from sessionbook.services.svc_availability import AvailabilityService
from sessionbook.services.svc_ledger import SlotLedgerService
from sessionbook.services.svc_notification import NotificationKind, NotificationService
from sessionbook.services.svc_package import PackageService
from sessionbook.validators.val_booking import BookingValidator
from sessionbook.validators.val_errors import NotFoundError

class BookingService:
    @staticmethod
    def _generate_booking_number(now: datetime) -> str:
        return f"BK{now:%y%m}{random.randint(0, 9999):04d}"

    @staticmethod
    def build_booking(
        client_id: str,
        booking: BookingCreate,
        package: Package,
        recurring_group_id: Optional[str] = None,
    ) -> Booking:
        """A new pending booking carrying the package's price and session balance"""
        now = datetime.now(timezone.utc)
        return Booking(
            id=str(uuid.uuid4()),
            booking_number=BookingService._generate_booking_number(now),
            client_id=client_id,
            trainer_id=booking.trainer_id,
            package_id=package.id,
            session_date=booking.session_date,
            session_time=booking.session_time,
            location=booking.location,
            notes=booking.notes,
            status=BookingStatus.PENDING,
            amount=package.price,
            remaining_sessions=package.total_sessions,
            package_end_date=package.end_date_from(booking.session_date),
            recurring_group_id=recurring_group_id,
            payment_intent_id=booking.payment_intent_id,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def persist_new_booking(db: CosmosStore, new_booking: Booking) -> Booking:
        """
        Reserve the slot in the trainer's ledger, then write the booking.

        The ledger reservation is the commit point for the no-double-booking
        guarantee; if the booking write fails afterwards the reservation is
        released again.
        """
        SlotLedgerService.reserve(
            db, new_booking.trainer_id, new_booking.session_date, new_booking.id, new_booking.interval
        )
        try:
            return BookingRepository.create(db, new_booking)
        except Exception:
            SlotLedgerService.release(db, new_booking.trainer_id, new_booking.session_date, new_booking.id)
            raise

    @staticmethod
    def create_booking(
        db: CosmosStore,
        client_id: str,
        booking: BookingCreate,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Booking:
        try:
            with start_span("create_booking", attributes={
                "client_id": client_id,
                "trainer_id": booking.trainer_id
            }):
                log_event("Create booking started", {
                    "client_id": client_id,
                    "trainer_id": booking.trainer_id,
                    "package_id": booking.package_id,
                    "session_date": booking.session_date.isoformat(),
                    "session_time": booking.session_time.isoformat()
                })

                package = PackageService.get_active_package(db, booking.package_id)
                new_booking = BookingService.build_booking(client_id, booking, package)

                # Friendly early rejection; the ledger below is what actually serializes writers
                AvailabilityService.ensure_slot_bookable(
                    db, booking.trainer_id, booking.session_date, booking.session_time,
                    new_booking.duration_minutes,
                )
                BookingService.persist_new_booking(db, new_booking)

                log_event("Booking created successfully", {
                    "booking_id": new_booking.id,
                    "client_id": client_id,
                    "trainer_id": booking.trainer_id
                })
                log_metric("bookings_created", 1, {"trainer_id": booking.trainer_id})

                NotificationService.emit(db, background_tasks, new_booking.trainer_id, NotificationKind.BOOKING_CREATED, {
                    "booking_id": new_booking.id,
                    "client_id": client_id,
                    "session_date": new_booking.session_date.isoformat(),
                    "session_time": new_booking.session_time.strftime("%H:%M"),
                })
                return new_booking
        except Exception as e:
            log_exception(e, {
                "operation": "create_booking",
                "client_id": client_id,
                "trainer_id": booking.trainer_id
            })
            raise

    @staticmethod
    def get_booking(db: CosmosStore, booking_id: str) -> Optional[Booking]:
        try:
            with start_span("get_booking", attributes={"booking_id": booking_id}):
                booking = BookingRepository.get(db, booking_id)
                if booking is None:
                    log_event("Booking not found", {"booking_id": booking_id})
                return booking
        except Exception as e:
            log_exception(e, {"operation": "get_booking", "booking_id": booking_id})
            raise

    @staticmethod
    def require_booking(db: CosmosStore, booking_id: str) -> Booking:
        booking = BookingService.get_booking(db, booking_id)
        if booking is None:
            raise NotFoundError("booking_not_found", "Booking not found", booking_id=booking_id)
        return booking

    @staticmethod
    def list_bookings(
        db: CosmosStore,
        current_user: AuthUser,
        status: Optional[BookingStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Booking], int]:
        """Bookings visible to the caller: trainers see theirs, clients theirs, admins all"""
        try:
            with start_span("list_bookings", attributes={"user_id": current_user.id, "role": current_user.role.value}):
                trainer_id = current_user.trainer_id if current_user.role == UserRole.TRAINER else None
                client_id = current_user.client_id if current_user.role == UserRole.CLIENT else None
                bookings, total = BookingRepository.search(
                    db,
                    trainer_id=trainer_id,
                    client_id=client_id,
                    status=status,
                    start=start_date,
                    end=end_date,
                    page=page,
                    limit=limit,
                )
                log_event("Bookings listed", {"user_id": current_user.id, "count": len(bookings), "total": total})
                return bookings, total
        except Exception as e:
            log_exception(e, {"operation": "list_bookings", "user_id": current_user.id})
            raise

    @staticmethod
    def confirm_booking(
        db: CosmosStore,
        booking: Booking,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Booking:
        """Trainer acceptance of a pending booking"""
        try:
            with start_span("confirm_booking", attributes={"booking_id": booking.id}):
                BookingValidator.validate_confirm(booking)

                booking.status = BookingStatus.CONFIRMED
                booking.confirmed_at = datetime.now(timezone.utc)
                BookingRepository.save(db, booking)

                log_event("Booking confirmed", {"booking_id": booking.id, "trainer_id": booking.trainer_id})
                NotificationService.emit(db, background_tasks, booking.client_id, NotificationKind.BOOKING_CONFIRMED, {
                    "booking_id": booking.id,
                    "session_date": booking.session_date.isoformat(),
                    "session_time": booking.session_time.strftime("%H:%M"),
                })
                return booking
        except Exception as e:
            log_exception(e, {"operation": "confirm_booking", "booking_id": booking.id})
            raise
