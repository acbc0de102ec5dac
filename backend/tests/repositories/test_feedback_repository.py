from datetime import datetime

import pytest
import pytz
from sqlalchemy.exc import IntegrityError

from mentorbook.core.enums import FeedbackStatus, FeedbackType
from mentorbook.repositories.factory import RepositoryFactory

RESPONDED_AT = datetime(2030, 1, 2, 12, 0, tzinfo=pytz.UTC)


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_feedback_repository(db)


@pytest.fixture
def feedback(repository, mentee):
    return repository.create(
        user_id=mentee.id,
        feedback_type=FeedbackType.ARTICLE.value,
        reference_id="01HF4G12ABCDEF3456789XYZAB",
        rating=4,
        status=FeedbackStatus.ACTIVE.value,
    )


def test_unique_per_user_and_item(repository, feedback, mentee) -> None:
    with pytest.raises(IntegrityError):
        repository.create(
            user_id=mentee.id,
            feedback_type=FeedbackType.ARTICLE.value,
            reference_id=feedback.reference_id,
            rating=2,
            status=FeedbackStatus.ACTIVE.value,
        )


def test_set_response_only_once(repository, feedback, mentor, db) -> None:
    assert repository.set_response_if_absent(feedback.id, "Thanks", mentor.id, RESPONDED_AT)
    assert not repository.set_response_if_absent(feedback.id, "Again", mentor.id, RESPONDED_AT)
    db.refresh(feedback)
    assert feedback.mentor_response == "Thanks"


def test_booking_ids_with_feedback(repository, mentee) -> None:
    repository.create(
        user_id=mentee.id,
        feedback_type=FeedbackType.BOOKING.value,
        reference_id="01HF4G12ABCDEF3456789XYZAC",
        rating=5,
        status=FeedbackStatus.ACTIVE.value,
    )
    found = repository.booking_ids_with_feedback(
        ["01HF4G12ABCDEF3456789XYZAC", "01HF4G12ABCDEF3456789XYZAD"]
    )
    assert found == {"01HF4G12ABCDEF3456789XYZAC"}
    assert repository.booking_ids_with_feedback([]) == set()
