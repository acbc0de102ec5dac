# backend/mentorbook/services/booking_service.py
"""
Booking Service for the mentorship marketplace.

Owns the booking lifecycle: creation (with the conflict checker's
preconditions), status transitions through the transition table,
the per-field update contract, party-only reads and the payment callback.

Checks on an existing booking always run in this order:
existence, party membership, transition edge, actor role, field rules.
Nothing is written until every check has passed, and notifications are
dispatched only after the change has committed.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional, Tuple, cast

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import (
    ActorRole,
    BookingStatus,
    CancelledBy,
    GatewayPaymentStatus,
    PaymentStatus,
)
from ..core.exceptions import (
    DomainException,
    ForbiddenException,
    NotAPartyException,
    NotFoundException,
    OfferingUnavailableException,
    RepositoryException,
    SlotConflictException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc
from ..database import store_error_of, with_db_retry
from ..domain.booking_state_machine import validate_transition
from ..domain.payment_order import parse_payment_order_id
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingUpdate
from .base import BaseService, Clock, is_conflict_error
from .conflict_checker import ConflictChecker
from .notification_service import NotificationService
from .user_profile_service import UserProfile, UserProfileService

logger = logging.getLogger(__name__)

SLOT_CONFLICT_CONSTRAINT = "bookings_no_overlap_per_mentor"
GENERIC_CONFLICT_MESSAGE = "This time slot conflicts with an existing booking"

MENTOR_ONLY_FIELDS = ("meeting_link", "mentor_notes")
MENTEE_ONLY_FIELDS = ("mentee_rating", "mentee_feedback")


@dataclass
class BookingView:
    """A booking together with who is looking at it and both parties' profiles."""

    booking: Booking
    viewer_role: ActorRole
    mentor: Optional[UserProfile] = None
    mentee: Optional[UserProfile] = None


class BookingService(BaseService):
    """Service layer for the booking lifecycle."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        user_profile_service: Optional[UserProfileService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.offering_repository = RepositoryFactory.create_offering_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, clock=self.clock)
        self.notification_service = notification_service or NotificationService()
        self.user_profile_service = user_profile_service or UserProfileService(db)

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(self, mentee_id: str, offering_id: str, scheduled_at: datetime) -> Booking:
        """
        Create a pending booking for ``mentee_id``.

        Args:
            mentee_id: The actor booking the session
            offering_id: Offering being booked
            scheduled_at: Requested start; must carry a timezone

        Returns:
            The created booking

        Raises:
            NotFoundException: Offering does not exist
            OfferingUnavailableException: Offering is not active
            ValidationException: Naive start time, or booking one's own offering
            InsufficientNoticeException, TooFarInAdvanceException,
            OutsideAvailabilityException, SlotConflictException,
            DailyLimitReachedException: Calendar preconditions
        """
        self.log_operation(
            "create_booking",
            mentee_id=mentee_id,
            offering_id=offering_id,
            scheduled_at=scheduled_at.isoformat(),
        )
        try:
            booking, auto_confirmed = self._create_booking_record(
                mentee_id, offering_id, scheduled_at
            )
        except DomainException as exc:
            prometheus_metrics.record_rejection(exc.code)
            raise

        self.notification_service.booking_created(booking)
        if auto_confirmed:
            self.notification_service.booking_status_changed(
                booking, BookingStatus.PENDING.value, ActorRole.SYSTEM, booking.confirmed_at
            )
        return booking

    def _create_booking_record(
        self, mentee_id: str, offering_id: str, scheduled_at: datetime
    ) -> Tuple[Booking, bool]:
        if scheduled_at.tzinfo is None:
            raise ValidationException(
                "scheduled_at must include a timezone offset", code="NAIVE_DATETIME"
            )
        scheduled_at = ensure_utc(scheduled_at)

        offering = with_db_retry(
            "get_offering", lambda: self.offering_repository.get_by_id(offering_id)
        )
        if not offering:
            raise NotFoundException("Offering not found", details={"offering_id": offering_id})
        if not offering.is_active:
            raise OfferingUnavailableException(offering.id, offering.status)
        if offering.mentor_id == mentee_id:
            raise ValidationException("You cannot book your own offering", code="SELF_BOOKING")

        now = self.now()
        auto_confirmed = False
        try:
            with self.transaction():
                self.repository.lock_mentor_calendar(offering.mentor_id)
                window = self.conflict_checker.validate_new_booking(offering, scheduled_at, now)
                booking = self.repository.create(
                    mentor_id=offering.mentor_id,
                    mentee_id=mentee_id,
                    offering_id=offering.id,
                    scheduled_at=window.scheduled_at,
                    duration_minutes=offering.duration_minutes,
                    buffer_before_minutes=offering.buffer_before_minutes,
                    buffer_after_minutes=offering.buffer_after_minutes,
                    blocked_start=window.blocked_start,
                    blocked_end=window.blocked_end,
                    status=BookingStatus.PENDING.value,
                    payment_status=(
                        PaymentStatus.PAID.value if offering.is_free else PaymentStatus.PENDING.value
                    ),
                )
                if offering.is_free and settings.auto_confirm_free_bookings:
                    self._apply_transition(booking, BookingStatus.CONFIRMED, ActorRole.SYSTEM, now)
                    auto_confirmed = True
        except IntegrityError as exc:
            raise self._conflict_from_integrity_error(exc, offering.mentor_id, scheduled_at) from exc
        except (OperationalError, RepositoryException) as exc:
            # Deadlocks arrive raw or wrapped by the calendar lock and overlap queries
            store_error = store_error_of(exc)
            if store_error is not None and is_conflict_error(store_error):
                raise SlotConflictException(
                    GENERIC_CONFLICT_MESSAGE,
                    details={"mentor_id": offering.mentor_id},
                ) from exc
            raise

        self.logger.info(f"Created booking {booking.id} for mentee {mentee_id}")
        return booking, auto_confirmed

    def _resolve_integrity_constraint(self, integrity_error: IntegrityError) -> str:
        """Name of the violated constraint, from driver diagnostics or the message."""
        orig = getattr(integrity_error, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = getattr(diag, "constraint_name", "") if diag is not None else ""
        if not constraint_name and SLOT_CONFLICT_CONSTRAINT in str(orig):
            constraint_name = SLOT_CONFLICT_CONSTRAINT
        return constraint_name or ""

    def _conflict_from_integrity_error(
        self, exc: IntegrityError, mentor_id: str, scheduled_at: datetime
    ) -> DomainException:
        constraint_name = self._resolve_integrity_constraint(exc)
        if constraint_name == SLOT_CONFLICT_CONSTRAINT or "exclusion" in str(exc).lower():
            self.logger.info(f"Exclusion constraint rejected booking for mentor {mentor_id}")
            return SlotConflictException(
                GENERIC_CONFLICT_MESSAGE,
                details={"mentor_id": mentor_id, "scheduled_at": scheduled_at.isoformat()},
            )
        self.logger.warning(f"Booking insert violated {constraint_name or 'a constraint'}: {exc}")
        return ValidationException(
            "Booking references an unknown user or offering",
            code="INVALID_REFERENCE",
            details={"constraint": constraint_name},
        )

    # Transitions and field updates

    @BaseService.measure_operation("transition_booking")
    def transition_booking(
        self,
        booking_id: str,
        actor_id: str,
        new_status: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> Booking:
        """Move a booking to ``new_status`` on behalf of one of its parties."""
        if cancellation_reason is None:
            changes = BookingUpdate(status=new_status)
        else:
            changes = BookingUpdate(status=new_status, cancellation_reason=cancellation_reason)
        return self.update_booking(booking_id, actor_id, changes)

    @BaseService.measure_operation("update_booking")
    def update_booking(self, booking_id: str, actor_id: str, changes: BookingUpdate) -> Booking:
        """
        Apply a status change and/or field edits atomically.

        Every rule is evaluated against the status the booking had before
        this call, so e.g. completing and rating in one request is rejected.

        Raises:
            NotFoundException: Unknown booking
            NotAPartyException: Actor is neither mentor nor mentee
            InvalidTransitionException: Requested status not reachable
            RoleNotAllowedException: Actor's side may not take that edge
            ForbiddenException: Field belongs to the other side
            ValidationException: Field rule violated
        """
        provided = set(changes.model_fields_set)
        # An explicit null status means "no status change"
        if changes.status is None:
            provided.discard("status")
        if not provided:
            raise ValidationException("No changes supplied", code="EMPTY_UPDATE")

        self.log_operation(
            "update_booking",
            booking_id=booking_id,
            actor_id=actor_id,
            fields=sorted(provided),
        )

        now = self.now()
        with self.transaction():
            booking = self.repository.get_by_id(booking_id, for_update=True)
            if not booking:
                raise NotFoundException("Booking not found", details={"booking_id": booking_id})
            role = booking.party_role(actor_id)
            if role is None:
                raise NotAPartyException(booking_id, actor_id)

            previous_status = booking.current_status
            target = changes.status if "status" in provided else None
            if target is not None:
                validate_transition(previous_status, target, role)
            self._validate_field_changes(booking, role, previous_status, changes, target)

            if target is not None:
                self._apply_transition(
                    booking, target, role, now, reason=changes.cancellation_reason
                )
            for field in MENTOR_ONLY_FIELDS + MENTEE_ONLY_FIELDS:
                if field in provided:
                    setattr(booking, field, getattr(changes, field))
            self.repository.flush()

        if target is not None:
            self.notification_service.booking_status_changed(
                booking, previous_status.value, role, now
            )
        return booking

    def _validate_field_changes(
        self,
        booking: Booking,
        role: ActorRole,
        previous_status: BookingStatus,
        changes: BookingUpdate,
        target: Optional[BookingStatus],
    ) -> None:
        provided = changes.model_fields_set

        if "cancellation_reason" in provided and target != BookingStatus.CANCELLED:
            raise ValidationException(
                "A cancellation reason can only be given when cancelling",
                code="REASON_WITHOUT_CANCEL",
            )

        for field in MENTOR_ONLY_FIELDS:
            if field in provided and role != ActorRole.MENTOR:
                raise ForbiddenException(
                    f"Only the mentor can update {field}",
                    code="MENTOR_ONLY_FIELD",
                    details={"field": field},
                )
        if "meeting_link" in provided and booking.is_terminal:
            raise ValidationException(
                f"Cannot change the meeting link of a {previous_status.value} booking",
                code="BOOKING_CLOSED",
            )

        mentee_fields = [field for field in MENTEE_ONLY_FIELDS if field in provided]
        if not mentee_fields:
            return
        if role != ActorRole.MENTEE:
            raise ForbiddenException(
                "Only the mentee can rate a session",
                code="MENTEE_ONLY_FIELD",
                details={"fields": mentee_fields},
            )
        if previous_status != BookingStatus.COMPLETED:
            raise ValidationException(
                "Can only rate completed sessions",
                code="BOOKING_NOT_COMPLETED",
                details={"status": previous_status.value},
            )
        if "mentee_rating" in provided:
            rating = changes.mentee_rating
            if rating is None or not 1 <= rating <= 5:
                raise ValidationException(
                    "Rating must be between 1 and 5", code="INVALID_RATING"
                )
            if booking.mentee_rating is not None:
                raise ValidationException(
                    "This session has already been rated", code="RATING_ALREADY_SET"
                )
        if "mentee_feedback" in provided and booking.mentee_feedback is not None:
            raise ValidationException(
                "Feedback for this session has already been submitted",
                code="FEEDBACK_ALREADY_SET",
            )

    def _apply_transition(
        self,
        booking: Booking,
        target: BookingStatus,
        role: ActorRole,
        at: datetime,
        reason: Optional[str] = None,
    ) -> None:
        """Check the edge/role against the table, then record the change on the booking."""
        current = booking.current_status
        validate_transition(current, target, role)

        if target == BookingStatus.CONFIRMED:
            booking.confirm(at)
        elif target == BookingStatus.COMPLETED:
            booking.complete(at)
        elif target == BookingStatus.CANCELLED:
            booking.cancel(CancelledBy(role.value), reason, at)
        elif target == BookingStatus.NO_SHOW:
            booking.mark_no_show()

        prometheus_metrics.record_transition(current.value, target.value, role.value)

    # Reads

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str, actor_id: str) -> BookingView:
        """Booking detail for one of its parties, with both profiles resolved."""
        booking = with_db_retry("get_booking", lambda: self.repository.get_by_id(booking_id))
        if not booking:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        role = booking.party_role(actor_id)
        if role is None:
            raise NotAPartyException(booking_id, actor_id)
        return self._build_views([booking], actor_id)[0]

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        actor_id: str,
        as_role: Optional[ActorRole] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[BookingView]:
        """Bookings where the actor is a party, newest first."""
        if as_role == ActorRole.SYSTEM:
            raise ValidationException("as_role must be mentor or mentee")
        bookings = with_db_retry(
            "list_bookings",
            lambda: self.repository.list_for_user(actor_id, as_role=as_role, status=status),
        )
        return self._build_views(bookings, actor_id)

    def _build_views(self, bookings: List[Booking], actor_id: str) -> List[BookingView]:
        mentors = self.user_profile_service.resolve_many(
            (booking.mentor_id for booking in bookings), prefer=ActorRole.MENTOR
        )
        mentees = self.user_profile_service.resolve_many(
            (booking.mentee_id for booking in bookings), prefer=ActorRole.MENTEE
        )
        views = []
        for booking in bookings:
            views.append(
                BookingView(
                    booking=booking,
                    viewer_role=cast(ActorRole, booking.party_role(actor_id)),
                    mentor=mentors.get(booking.mentor_id),
                    mentee=mentees.get(booking.mentee_id),
                )
            )
        return views

    # Payment callback

    @BaseService.measure_operation("apply_payment_update")
    def apply_payment_update(self, order_id: str, gateway_status: Optional[str]) -> Booking:
        """
        Record a payment gateway callback.

        SUCCESS marks the booking paid and confirms a pending booking as the
        system actor; FAILED marks it failed; anything else leaves it pending.
        A paid booking stays paid. Replaying a callback changes nothing.

        Raises:
            ValidationException: Malformed order id
            NotFoundException: Order id names an unknown booking
        """
        booking_id = parse_payment_order_id(order_id)
        self.log_operation(
            "apply_payment_update",
            booking_id=booking_id,
            order_id=order_id,
            gateway_status=gateway_status,
        )

        if gateway_status == GatewayPaymentStatus.SUCCESS.value:
            payment_status = PaymentStatus.PAID
        elif gateway_status == GatewayPaymentStatus.FAILED.value:
            payment_status = PaymentStatus.FAILED
        else:
            payment_status = PaymentStatus.PENDING

        now = self.now()
        confirmed = False
        payment_changed = False
        with self.transaction():
            booking = self.repository.get_by_id(booking_id, for_update=True)
            if not booking:
                raise NotFoundException(
                    "Booking not found", details={"booking_id": booking_id, "order_id": order_id}
                )

            if (
                booking.payment_status == PaymentStatus.PAID.value
                and payment_status != PaymentStatus.PAID
            ):
                self.logger.warning(
                    f"Ignoring {payment_status.value} callback for paid booking {booking.id}"
                )
            elif booking.payment_status != payment_status.value:
                booking.payment_status = payment_status.value
                payment_changed = True

            if booking.payment_order_id != order_id:
                booking.payment_order_id = order_id

            if (
                payment_status == PaymentStatus.PAID
                and booking.current_status == BookingStatus.PENDING
            ):
                self._apply_transition(booking, BookingStatus.CONFIRMED, ActorRole.SYSTEM, now)
                confirmed = True
            elif payment_status == PaymentStatus.PAID and booking.is_terminal:
                self.logger.info(
                    f"Payment recorded for {booking.status} booking {booking.id}; status unchanged"
                )
            self.repository.flush()

        if payment_changed:
            self.notification_service.payment_status_changed(booking, order_id)
        if confirmed:
            self.notification_service.booking_status_changed(
                booking, BookingStatus.PENDING.value, ActorRole.SYSTEM, now
            )
        return booking
