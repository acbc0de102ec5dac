"""Status transitions and the per-field update contract."""

import pytest

from mentorbook.core.enums import ActorRole, BookingStatus, CancelledBy, RoleName
from mentorbook.core.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotAPartyException,
    NotFoundException,
    RoleNotAllowedException,
    ValidationException,
)
from mentorbook.schemas.booking import BookingUpdate


@pytest.fixture
def pending(booking_service, offering, mentee, monday):
    return booking_service.create_booking(mentee.id, offering.id, monday(9, 0))


@pytest.fixture
def confirmed(booking_service, pending, mentor):
    return booking_service.transition_booking(pending.id, mentor.id, BookingStatus.CONFIRMED)


@pytest.fixture
def completed(booking_service, confirmed, mentor):
    return booking_service.transition_booking(confirmed.id, mentor.id, BookingStatus.COMPLETED)


class TestTransitions:
    def test_mentor_confirms(self, booking_service, pending, mentor, fixed_now, notifications) -> None:
        booking = booking_service.transition_booking(pending.id, mentor.id, BookingStatus.CONFIRMED)
        assert booking.current_status == BookingStatus.CONFIRMED
        assert booking.confirmed_at == fixed_now
        notifications.booking_status_changed.assert_called_once_with(
            booking, "pending", ActorRole.MENTOR, fixed_now
        )

    def test_mentee_cannot_confirm(self, booking_service, pending, mentee) -> None:
        with pytest.raises(RoleNotAllowedException):
            booking_service.transition_booking(pending.id, mentee.id, BookingStatus.CONFIRMED)

    def test_mentee_cannot_complete(self, booking_service, confirmed, mentee) -> None:
        with pytest.raises(ForbiddenException) as exc_info:
            booking_service.transition_booking(confirmed.id, mentee.id, BookingStatus.COMPLETED)
        assert exc_info.value.code == "ROLE_NOT_ALLOWED"

    def test_mentee_cancels_with_reason(self, booking_service, confirmed, mentee, fixed_now) -> None:
        booking = booking_service.transition_booking(
            confirmed.id, mentee.id, BookingStatus.CANCELLED, cancellation_reason="Exam clash"
        )
        assert booking.current_status == BookingStatus.CANCELLED
        assert booking.cancelled_by == CancelledBy.MENTEE.value
        assert booking.cancellation_reason == "Exam clash"
        assert booking.cancelled_at == fixed_now

    def test_mentor_marks_no_show(self, booking_service, confirmed, mentor) -> None:
        booking = booking_service.transition_booking(confirmed.id, mentor.id, BookingStatus.NO_SHOW)
        assert booking.current_status == BookingStatus.NO_SHOW

    def test_completed_is_terminal(self, booking_service, completed, mentor, fixed_now) -> None:
        assert completed.completed_at == fixed_now
        for target in (BookingStatus.CANCELLED, BookingStatus.CONFIRMED, BookingStatus.PENDING):
            with pytest.raises(InvalidTransitionException):
                booking_service.transition_booking(completed.id, mentor.id, target)

    def test_pending_cannot_complete(self, booking_service, pending, mentor) -> None:
        with pytest.raises(InvalidTransitionException):
            booking_service.transition_booking(pending.id, mentor.id, BookingStatus.COMPLETED)

    def test_outsider_is_not_a_party(self, booking_service, pending, make_user) -> None:
        outsider = make_user(RoleName.MENTEE)
        with pytest.raises(NotAPartyException):
            booking_service.transition_booking(pending.id, outsider.id, BookingStatus.CANCELLED)

    def test_unknown_booking(self, booking_service, mentor) -> None:
        with pytest.raises(NotFoundException):
            booking_service.transition_booking(
                "01HF4G12ABCDEF3456789XYZAB", mentor.id, BookingStatus.CONFIRMED
            )

    def test_party_check_precedes_transition_check(
        self, booking_service, completed, make_user
    ) -> None:
        outsider = make_user()
        with pytest.raises(NotAPartyException):
            booking_service.transition_booking(completed.id, outsider.id, BookingStatus.CANCELLED)

    def test_rejected_transition_changes_nothing(
        self, booking_service, pending, mentee, db, notifications
    ) -> None:
        with pytest.raises(RoleNotAllowedException):
            booking_service.transition_booking(pending.id, mentee.id, BookingStatus.CONFIRMED)
        db.refresh(pending)
        assert pending.current_status == BookingStatus.PENDING
        notifications.booking_status_changed.assert_not_called()


class TestFieldRules:
    def test_empty_update(self, booking_service, pending, mentor) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(pending.id, mentor.id, BookingUpdate())
        assert exc_info.value.code == "EMPTY_UPDATE"

    def test_null_status_is_no_change(self, booking_service, pending, mentor, notifications) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(pending.id, mentor.id, BookingUpdate(status=None))
        assert exc_info.value.code == "EMPTY_UPDATE"

        booking = booking_service.update_booking(
            pending.id, mentor.id, BookingUpdate(status=None, mentor_notes="Bring a CV")
        )
        assert booking.current_status == BookingStatus.PENDING
        assert booking.mentor_notes == "Bring a CV"
        notifications.booking_status_changed.assert_not_called()

    def test_mentor_sets_link_and_notes(self, booking_service, confirmed, mentor) -> None:
        booking = booking_service.update_booking(
            confirmed.id,
            mentor.id,
            BookingUpdate(meeting_link="https://meet.example.com/abc", mentor_notes="Bring CV"),
        )
        assert booking.meeting_link == "https://meet.example.com/abc"
        assert booking.mentor_notes == "Bring CV"
        assert booking.current_status == BookingStatus.CONFIRMED

    def test_confirm_and_link_together(self, booking_service, pending, mentor) -> None:
        booking = booking_service.update_booking(
            pending.id,
            mentor.id,
            BookingUpdate(status=BookingStatus.CONFIRMED, meeting_link="https://meet.example.com/x"),
        )
        assert booking.current_status == BookingStatus.CONFIRMED
        assert booking.meeting_link == "https://meet.example.com/x"

    def test_mentee_cannot_set_mentor_fields(self, booking_service, pending, mentee) -> None:
        with pytest.raises(ForbiddenException) as exc_info:
            booking_service.update_booking(pending.id, mentee.id, BookingUpdate(mentor_notes="hi"))
        assert exc_info.value.code == "MENTOR_ONLY_FIELD"

    def test_link_locked_on_terminal_booking(self, booking_service, completed, mentor) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(
                completed.id, mentor.id, BookingUpdate(meeting_link="https://late.example.com")
            )
        assert exc_info.value.code == "BOOKING_CLOSED"

    def test_notes_allowed_after_completion(self, booking_service, completed, mentor) -> None:
        booking = booking_service.update_booking(
            completed.id, mentor.id, BookingUpdate(mentor_notes="Went well")
        )
        assert booking.mentor_notes == "Went well"

    def test_reason_requires_cancellation(self, booking_service, pending, mentee) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(
                pending.id, mentee.id, BookingUpdate(cancellation_reason="changed my mind")
            )
        assert exc_info.value.code == "REASON_WITHOUT_CANCEL"

    def test_failed_field_rule_rolls_back_status(
        self, booking_service, pending, mentor, db
    ) -> None:
        with pytest.raises(ForbiddenException):
            booking_service.update_booking(
                pending.id,
                mentor.id,
                BookingUpdate(status=BookingStatus.CONFIRMED, mentee_rating=5),
            )
        db.refresh(pending)
        assert pending.current_status == BookingStatus.PENDING


class TestMenteeRating:
    def test_rating_completed_booking(self, booking_service, completed, mentee) -> None:
        booking = booking_service.update_booking(
            completed.id, mentee.id, BookingUpdate(mentee_rating=4, mentee_feedback="Very helpful")
        )
        assert booking.mentee_rating == 4
        assert booking.mentee_feedback == "Very helpful"

    def test_rating_out_of_range(self, booking_service, completed, mentee) -> None:
        for rating in (0, 6):
            with pytest.raises(ValidationException) as exc_info:
                booking_service.update_booking(
                    completed.id, mentee.id, BookingUpdate(mentee_rating=rating)
                )
            assert exc_info.value.code == "INVALID_RATING"

    def test_rating_before_completion(self, booking_service, pending, mentee) -> None:
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(pending.id, mentee.id, BookingUpdate(mentee_rating=4))
        assert exc_info.value.code == "BOOKING_NOT_COMPLETED"

    def test_mentor_cannot_rate(self, booking_service, completed, mentor) -> None:
        with pytest.raises(ForbiddenException) as exc_info:
            booking_service.update_booking(completed.id, mentor.id, BookingUpdate(mentee_rating=5))
        assert exc_info.value.code == "MENTEE_ONLY_FIELD"

    def test_rating_is_set_once(self, booking_service, completed, mentee) -> None:
        booking_service.update_booking(completed.id, mentee.id, BookingUpdate(mentee_rating=4))
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(completed.id, mentee.id, BookingUpdate(mentee_rating=5))
        assert exc_info.value.code == "RATING_ALREADY_SET"

    def test_feedback_text_is_set_once(self, booking_service, completed, mentee) -> None:
        booking_service.update_booking(completed.id, mentee.id, BookingUpdate(mentee_feedback="ok"))
        with pytest.raises(ValidationException) as exc_info:
            booking_service.update_booking(
                completed.id, mentee.id, BookingUpdate(mentee_feedback="changed")
            )
        assert exc_info.value.code == "FEEDBACK_ALREADY_SET"


class TestReads:
    def test_party_views(self, booking_service, confirmed, mentor, mentee) -> None:
        mentor_view = booking_service.get_booking(confirmed.id, mentor.id)
        assert mentor_view.viewer_role == ActorRole.MENTOR
        assert mentor_view.mentor.name == "Maya Mentor"
        assert mentor_view.mentee.name == "Ravi Mentee"

        mentee_view = booking_service.get_booking(confirmed.id, mentee.id)
        assert mentee_view.viewer_role == ActorRole.MENTEE

    def test_outsider_cannot_read(self, booking_service, pending, make_user) -> None:
        with pytest.raises(NotAPartyException):
            booking_service.get_booking(pending.id, make_user().id)

    def test_list_by_side(self, booking_service, pending, mentor, mentee) -> None:
        assert [v.booking.id for v in booking_service.list_bookings(mentor.id)] == [pending.id]
        assert booking_service.list_bookings(mentor.id, as_role=ActorRole.MENTEE) == []
        assert len(booking_service.list_bookings(mentee.id, as_role=ActorRole.MENTEE)) == 1
        assert booking_service.list_bookings(mentee.id, status=BookingStatus.CONFIRMED) == []

    def test_list_rejects_system_side(self, booking_service, mentee) -> None:
        with pytest.raises(ValidationException):
            booking_service.list_bookings(mentee.id, as_role=ActorRole.SYSTEM)
