"""Feedback submission, responses and the mentor inbox."""

import pytest

from mentorbook.core.enums import BookingStatus, FeedbackStatus, RoleName
from mentorbook.core.exceptions import (
    DuplicateFeedbackException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from mentorbook.models.content import MentorEvent, Post
from mentorbook.schemas.booking import BookingUpdate


@pytest.fixture
def article(db, mentor) -> Post:
    post = Post(author_id=mentor.id, title="How to prepare for interviews")
    db.add(post)
    db.commit()
    return post


@pytest.fixture
def mentor_event(db, mentor) -> MentorEvent:
    item = MentorEvent(created_by=mentor.id, title="Open office hours")
    db.add(item)
    db.commit()
    return item


@pytest.fixture
def completed_booking(booking_service, offering, mentor, mentee, monday):
    booking = booking_service.create_booking(mentee.id, offering.id, monday(9, 0))
    booking_service.transition_booking(booking.id, mentor.id, BookingStatus.CONFIRMED)
    return booking_service.transition_booking(booking.id, mentor.id, BookingStatus.COMPLETED)


@pytest.fixture
def article_feedback(feedback_service, article, mentee):
    return feedback_service.create_feedback(mentee.id, "article", article.id, 4, "  Useful read ")


class TestCreateFeedback:
    def test_creates_active_feedback(
        self, feedback_service, article, mentee, mentor, notifications
    ) -> None:
        feedback = feedback_service.create_feedback(mentee.id, "article", article.id, 5, "Great")

        assert feedback.status == FeedbackStatus.ACTIVE.value
        assert feedback.rating == 5
        assert feedback.comment == "Great"
        notifications.feedback_submitted.assert_called_once_with(feedback, mentor.id)

    def test_comment_is_trimmed(self, article_feedback) -> None:
        assert article_feedback.comment == "Useful read"

    def test_blank_comment_stored_as_none(self, feedback_service, mentor_event, mentee) -> None:
        feedback = feedback_service.create_feedback(mentee.id, "event", mentor_event.id, 3, "   ")
        assert feedback.comment is None

    def test_duplicate_is_rejected(self, feedback_service, article, article_feedback, mentee) -> None:
        with pytest.raises(DuplicateFeedbackException) as exc_info:
            feedback_service.create_feedback(mentee.id, "article", article.id, 2)
        assert exc_info.value.code == "DUPLICATE_FEEDBACK"

    def test_other_user_may_rate_same_item(
        self, feedback_service, article, article_feedback, make_user
    ) -> None:
        other = make_user(RoleName.MENTEE)
        feedback = feedback_service.create_feedback(other.id, "article", article.id, 2)
        assert feedback.id != article_feedback.id

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_out_of_range(self, feedback_service, article, mentee, rating) -> None:
        with pytest.raises(ValidationException) as exc_info:
            feedback_service.create_feedback(mentee.id, "article", article.id, rating)
        assert exc_info.value.code == "INVALID_RATING"

    def test_unknown_type(self, feedback_service, article, mentee) -> None:
        with pytest.raises(ValidationException) as exc_info:
            feedback_service.create_feedback(mentee.id, "podcast", article.id, 4)
        assert exc_info.value.code == "INVALID_FEEDBACK_TYPE"

    def test_missing_reference(self, feedback_service, mentee) -> None:
        with pytest.raises(NotFoundException):
            feedback_service.create_feedback(mentee.id, "booking", "01HF4G12ABCDEF3456789XYZAB", 4)

    def test_booking_feedback_notifies_mentor(
        self, feedback_service, completed_booking, mentee, mentor, notifications
    ) -> None:
        feedback = feedback_service.create_feedback(mentee.id, "booking", completed_booking.id, 5)
        notifications.feedback_submitted.assert_called_once_with(feedback, mentor.id)


class TestRespond:
    def test_owner_responds(self, feedback_service, article_feedback, mentor, fixed_now) -> None:
        feedback = feedback_service.respond_to_feedback(article_feedback.id, mentor.id, " Thanks! ")
        assert feedback.mentor_response == "Thanks!"
        assert feedback.responded_by == mentor.id
        assert feedback.mentor_response_at == fixed_now

    def test_second_response_rejected(self, feedback_service, article_feedback, mentor) -> None:
        feedback_service.respond_to_feedback(article_feedback.id, mentor.id, "Thanks")
        with pytest.raises(ValidationException) as exc_info:
            feedback_service.respond_to_feedback(article_feedback.id, mentor.id, "Again")
        assert exc_info.value.code == "RESPONSE_ALREADY_SUBMITTED"

    def test_admin_may_respond(self, feedback_service, article_feedback, admin) -> None:
        feedback = feedback_service.respond_to_feedback(article_feedback.id, admin.id, "Noted")
        assert feedback.responded_by == admin.id

    def test_stranger_cannot_respond(self, feedback_service, article_feedback, make_user) -> None:
        with pytest.raises(ForbiddenException):
            feedback_service.respond_to_feedback(article_feedback.id, make_user().id, "Hi")

    def test_author_cannot_respond_to_self(self, feedback_service, article_feedback, mentee) -> None:
        with pytest.raises(ForbiddenException):
            feedback_service.respond_to_feedback(article_feedback.id, mentee.id, "Hi")

    def test_empty_response(self, feedback_service, article_feedback, mentor) -> None:
        with pytest.raises(ValidationException) as exc_info:
            feedback_service.respond_to_feedback(article_feedback.id, mentor.id, "   ")
        assert exc_info.value.code == "EMPTY_RESPONSE"

    def test_unknown_feedback(self, feedback_service, mentor) -> None:
        with pytest.raises(NotFoundException):
            feedback_service.respond_to_feedback("01HF4G12ABCDEF3456789XYZAB", mentor.id, "Hi")


class TestUpdateAndArchive:
    def test_author_updates(self, feedback_service, article_feedback, mentee) -> None:
        feedback = feedback_service.update_feedback(article_feedback.id, mentee.id, rating=2)
        assert feedback.rating == 2
        assert feedback.comment == "Useful read"

    def test_blank_comment_clears(self, feedback_service, article_feedback, mentee) -> None:
        feedback = feedback_service.update_feedback(article_feedback.id, mentee.id, comment="")
        assert feedback.comment is None

    def test_only_author_updates(self, feedback_service, article_feedback, mentor) -> None:
        with pytest.raises(ForbiddenException):
            feedback_service.update_feedback(article_feedback.id, mentor.id, rating=1)

    def test_update_validates_rating(self, feedback_service, article_feedback, mentee) -> None:
        with pytest.raises(ValidationException):
            feedback_service.update_feedback(article_feedback.id, mentee.id, rating=9)

    def test_archive_hides_from_listing(
        self, feedback_service, article, article_feedback, mentee
    ) -> None:
        archived = feedback_service.archive_feedback(article_feedback.id, mentee.id)
        assert archived.status == FeedbackStatus.ARCHIVED.value
        assert feedback_service.list_feedback("article", article.id) == []
        archived_views = feedback_service.list_feedback(
            "article", article.id, status=FeedbackStatus.ARCHIVED
        )
        assert [view.id for view in archived_views] == [article_feedback.id]

    def test_archive_is_idempotent(self, feedback_service, article_feedback, admin) -> None:
        feedback_service.archive_feedback(article_feedback.id, admin.id)
        again = feedback_service.archive_feedback(article_feedback.id, admin.id)
        assert again.status == FeedbackStatus.ARCHIVED.value

    def test_archived_cannot_be_edited_or_answered(
        self, feedback_service, article_feedback, mentee, mentor
    ) -> None:
        feedback_service.archive_feedback(article_feedback.id, mentee.id)
        with pytest.raises(ValidationException):
            feedback_service.update_feedback(article_feedback.id, mentee.id, rating=3)
        with pytest.raises(ValidationException) as exc_info:
            feedback_service.respond_to_feedback(article_feedback.id, mentor.id, "Thanks")
        assert exc_info.value.code == "FEEDBACK_ARCHIVED"

    def test_stranger_cannot_archive(self, feedback_service, article_feedback, mentor) -> None:
        with pytest.raises(ForbiddenException):
            feedback_service.archive_feedback(article_feedback.id, mentor.id)


class TestListing:
    def test_list_with_author_profiles(
        self, feedback_service, article, article_feedback
    ) -> None:
        views = feedback_service.list_feedback("article", article.id)
        assert [view.id for view in views] == [article_feedback.id]
        assert views[0].author.name == "Ravi Mentee"

    def test_mentor_inbox_merges_sources(
        self,
        feedback_service,
        booking_service,
        article_feedback,
        mentor_event,
        completed_booking,
        mentor,
        mentee,
        make_user,
    ) -> None:
        feedback_service.create_feedback(make_user().id, "event", mentor_event.id, 5)
        booking_service.update_booking(
            completed_booking.id, mentee.id, BookingUpdate(mentee_rating=4, mentee_feedback="Nice")
        )

        views = feedback_service.list_feedback_for_mentor(mentor.id, mentor.id)

        assert len(views) == 3
        legacy = [view for view in views if view.is_legacy]
        assert len(legacy) == 1
        assert legacy[0].id == f"legacy-{completed_booking.id}"
        assert legacy[0].rating == 4
        assert legacy[0].comment == "Nice"

    def test_feedback_row_supersedes_booking_rating(
        self, feedback_service, booking_service, completed_booking, mentor, mentee
    ) -> None:
        booking_service.update_booking(
            completed_booking.id, mentee.id, BookingUpdate(mentee_rating=4)
        )
        feedback_service.create_feedback(mentee.id, "booking", completed_booking.id, 5)

        views = feedback_service.list_feedback_for_mentor(mentor.id, mentor.id)

        assert len(views) == 1
        assert views[0].is_legacy is False
        assert views[0].rating == 5

    def test_inbox_is_private(self, feedback_service, mentor, mentee) -> None:
        with pytest.raises(ForbiddenException):
            feedback_service.list_feedback_for_mentor(mentor.id, mentee.id)

    def test_admin_reads_inbox(self, feedback_service, mentor, admin) -> None:
        assert feedback_service.list_feedback_for_mentor(mentor.id, admin.id) == []
