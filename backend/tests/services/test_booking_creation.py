"""Booking creation preconditions, run against the SQLite test database."""

from datetime import time, timedelta
from decimal import Decimal

import hypothesis
from hypothesis import HealthCheck, given, strategies as st
import pytest
import pytz

from mentorbook.core.enums import BookingStatus, OfferingStatus, PaymentStatus, RoleName
from mentorbook.core.exceptions import (
    DailyLimitReachedException,
    InsufficientNoticeException,
    NotFoundException,
    OfferingUnavailableException,
    OutsideAvailabilityException,
    SlotConflictException,
    TooFarInAdvanceException,
    ValidationException,
)
from mentorbook.models.booking import Booking


def test_monday_morning_scenario(booking_service, offering, make_user, monday) -> None:
    first, second, third = (make_user(RoleName.MENTEE) for _ in range(3))

    booked = booking_service.create_booking(first.id, offering.id, monday(9, 0))
    assert booked.current_status == BookingStatus.PENDING
    assert booked.blocked_start == monday(8, 55)
    assert booked.blocked_end == monday(9, 35)

    with pytest.raises(SlotConflictException):
        booking_service.create_booking(second.id, offering.id, monday(9, 20))

    # 09:35 buffer end touches 09:35 buffer start of the next one
    later = booking_service.create_booking(third.id, offering.id, monday(9, 40))
    assert later.current_status == BookingStatus.PENDING


def test_duration_and_buffers_are_copied(booking_service, offering, mentee, monday, db) -> None:
    booking = booking_service.create_booking(mentee.id, offering.id, monday(9, 0))
    offering.duration_minutes = 60
    offering.buffer_after_minutes = 15
    db.flush()

    db.refresh(booking)
    assert booking.duration_minutes == 30
    assert booking.buffer_after_minutes == 5
    assert booking.payment_status == PaymentStatus.PENDING.value


def test_notice_boundary(
    booking_service, mentor, mentee, make_offering, make_slot, fixed_now
) -> None:
    # Availability all day Wednesday, 24h after the fixed Tuesday 09:00 clock
    make_slot(mentor, day_of_week=3, start=time(0, 0), end=time(23, 59))
    offering = make_offering(mentor)
    exactly = fixed_now + timedelta(hours=24)

    with pytest.raises(InsufficientNoticeException):
        booking_service.create_booking(mentee.id, offering.id, exactly - timedelta(seconds=1))

    booking = booking_service.create_booking(mentee.id, offering.id, exactly)
    assert booking.scheduled_at == exactly


def test_too_far_in_advance(booking_service, offering, mentee, monday) -> None:
    with pytest.raises(TooFarInAdvanceException):
        booking_service.create_booking(mentee.id, offering.id, monday(9, 0) + timedelta(weeks=5))


def test_outside_availability(booking_service, offering, mentee, monday) -> None:
    with pytest.raises(OutsideAvailabilityException):
        booking_service.create_booking(mentee.id, offering.id, monday(10, 0))
    with pytest.raises(OutsideAvailabilityException):
        booking_service.create_booking(mentee.id, offering.id, monday(9, 0) + timedelta(days=1))


def test_start_inside_window_is_enough(booking_service, offering, mentee, monday) -> None:
    # Session runs past 10:00; only the start must fall inside the window
    booking = booking_service.create_booking(mentee.id, offering.id, monday(9, 50))
    assert booking.scheduled_at == monday(9, 50)


def test_availability_in_mentor_timezone(
    booking_service, mentor, mentee, make_offering, make_slot, monday
) -> None:
    # Monday 09:00-10:00 in Kolkata is 03:30-04:30 UTC
    make_slot(mentor, day_of_week=1, timezone="Asia/Kolkata")
    offering = make_offering(mentor)
    booking = booking_service.create_booking(mentee.id, offering.id, monday(3, 30))
    assert booking.scheduled_at == monday(3, 30)

    with pytest.raises(OutsideAvailabilityException):
        booking_service.create_booking(mentee.id, offering.id, monday(9, 0))


def test_offset_aware_input_is_normalized(booking_service, offering, mentee, monday) -> None:
    local = monday(9, 0).astimezone(pytz.timezone("Asia/Kolkata"))
    booking = booking_service.create_booking(mentee.id, offering.id, local)
    assert booking.scheduled_at == monday(9, 0)


def test_naive_datetime_is_rejected(booking_service, offering, mentee, monday) -> None:
    with pytest.raises(ValidationException) as exc_info:
        booking_service.create_booking(mentee.id, offering.id, monday(9, 0).replace(tzinfo=None))
    assert exc_info.value.code == "NAIVE_DATETIME"


def test_daily_limit(booking_service, mentor, make_user, make_offering, make_slot, monday) -> None:
    make_slot(mentor, start=time(9, 0), end=time(17, 0))
    offering = make_offering(mentor, max_bookings_per_day=2)
    booking_service.create_booking(make_user().id, offering.id, monday(9, 0))
    booking_service.create_booking(make_user().id, offering.id, monday(11, 0))

    with pytest.raises(DailyLimitReachedException) as exc_info:
        booking_service.create_booking(make_user().id, offering.id, monday(13, 0))
    assert exc_info.value.details["date"] == "2030-01-07"


def test_cancelled_bookings_free_the_slot(booking_service, offering, make_user, monday) -> None:
    first = make_user()
    booking = booking_service.create_booking(first.id, offering.id, monday(9, 0))
    booking_service.transition_booking(booking.id, first.id, BookingStatus.CANCELLED)

    again = booking_service.create_booking(make_user().id, offering.id, monday(9, 0))
    assert again.current_status == BookingStatus.PENDING


def test_conflict_across_offerings_of_same_mentor(
    booking_service, mentor, offering, make_offering, make_user, monday
) -> None:
    other = make_offering(mentor, title="Resume review", duration_minutes=45)
    booking_service.create_booking(make_user().id, offering.id, monday(9, 0))
    with pytest.raises(SlotConflictException):
        booking_service.create_booking(make_user().id, other.id, monday(9, 30))


def test_unknown_and_inactive_offerings(
    booking_service, mentor, mentee, make_offering, monday
) -> None:
    with pytest.raises(NotFoundException):
        booking_service.create_booking(mentee.id, "01HF4G12ABCDEF3456789XYZAB", monday(9, 0))

    paused = make_offering(mentor, status=OfferingStatus.PAUSED.value)
    with pytest.raises(OfferingUnavailableException):
        booking_service.create_booking(mentee.id, paused.id, monday(9, 0))


def test_mentor_cannot_book_own_offering(booking_service, offering, mentor, monday) -> None:
    with pytest.raises(ValidationException) as exc_info:
        booking_service.create_booking(mentor.id, offering.id, monday(9, 0))
    assert exc_info.value.code == "SELF_BOOKING"


def test_mentor_can_book_another_mentor(
    booking_service, offering, make_user, monday
) -> None:
    other_mentor = make_user(RoleName.MENTOR)
    booking = booking_service.create_booking(other_mentor.id, offering.id, monday(9, 0))
    assert booking.party_role(other_mentor.id).value == "mentee"


def test_rejected_creation_writes_nothing(booking_service, offering, mentee, monday, db) -> None:
    with pytest.raises(OutsideAvailabilityException):
        booking_service.create_booking(mentee.id, offering.id, monday(12, 0))
    assert db.query(Booking).count() == 0


def test_creation_notifies_after_commit(booking_service, offering, mentee, monday, notifications) -> None:
    booking = booking_service.create_booking(mentee.id, offering.id, monday(9, 0))
    notifications.booking_created.assert_called_once_with(booking)
    notifications.booking_status_changed.assert_not_called()


class TestFreeOfferings:
    def test_free_booking_is_paid_and_pending(
        self, booking_service, mentor, mentee, make_offering, make_slot, monday
    ) -> None:
        make_slot(mentor)
        free = make_offering(mentor, price=Decimal("0"))
        booking = booking_service.create_booking(mentee.id, free.id, monday(9, 0))
        assert booking.payment_status == PaymentStatus.PAID.value
        assert booking.current_status == BookingStatus.PENDING

    def test_auto_confirm_setting(
        self,
        booking_service,
        mentor,
        mentee,
        make_offering,
        make_slot,
        monday,
        monkeypatch,
        notifications,
        fixed_now,
    ) -> None:
        from mentorbook.core.config import settings

        monkeypatch.setattr(settings, "auto_confirm_free_bookings", True)
        make_slot(mentor)
        free = make_offering(mentor, price=Decimal("0"))
        booking = booking_service.create_booking(mentee.id, free.id, monday(9, 0))

        assert booking.current_status == BookingStatus.CONFIRMED
        assert booking.confirmed_at == fixed_now
        notifications.booking_status_changed.assert_called_once()

    def test_paid_offering_ignores_auto_confirm(
        self, booking_service, offering, mentee, monday, monkeypatch
    ) -> None:
        from mentorbook.core.config import settings

        monkeypatch.setattr(settings, "auto_confirm_free_bookings", True)
        booking = booking_service.create_booking(mentee.id, offering.id, monday(9, 0))
        assert booking.current_status == BookingStatus.PENDING


_requests = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=20 * 12).map(lambda step: step * 5),
        st.sampled_from([15, 30, 45, 60, 90]),
        st.integers(min_value=0, max_value=20),
        st.integers(min_value=0, max_value=20),
    ),
    min_size=1,
    max_size=8,
)


@hypothesis.settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(requests=_requests)
def test_active_bookings_never_overlap(
    booking_service, db, make_user, make_offering, make_slot, monday, requests
) -> None:
    # Fresh mentor per example; earlier examples' rows stay in the test transaction
    mentor = make_user(RoleName.MENTOR)
    mentee = make_user(RoleName.MENTEE)
    make_slot(mentor, start=time(0, 0), end=time(23, 59))

    accepted = []
    for offset, duration, before, after in requests:
        offering = make_offering(
            mentor,
            duration_minutes=duration,
            buffer_before_minutes=before,
            buffer_after_minutes=after,
            max_bookings_per_day=50,
        )
        start = monday(0, 0) + timedelta(minutes=offset)
        blocked = (start - timedelta(minutes=before), start + timedelta(minutes=duration + after))
        expect_conflict = any(a1 < blocked[1] and blocked[0] < a2 for a1, a2 in accepted)

        try:
            booking_service.create_booking(mentee.id, offering.id, start)
        except SlotConflictException:
            assert expect_conflict
        else:
            assert not expect_conflict
            accepted.append(blocked)

    active = (
        db.query(Booking)
        .filter(
            Booking.mentor_id == mentor.id,
            Booking.status.in_([BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]),
        )
        .all()
    )
    assert len(active) == len(accepted)
    for i, first in enumerate(active):
        for second in active[i + 1 :]:
            assert not (
                first.blocked_start < second.blocked_end
                and second.blocked_start < first.blocked_end
            )
