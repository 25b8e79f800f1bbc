import pytest

from core.exceptions import NotFoundError, InvalidStateError
from models.quiz import AnswerOption
from services.package_service import PackageService
from services.question_service import QuestionService
from services.session_service import SessionService


async def test_questions_keep_package_total_in_sync(db_session, package):
    assert package.total_questions == 3
    assert await QuestionService(db_session).count_questions(package.id) == 3


async def test_questions_are_ordered(db_session, admin):
    package = await PackageService(db_session).create_package(created_by=admin.id, title="Order")
    service = QuestionService(db_session)
    for number in (3, 1, 2):
        await service.create_question(
            quiz_package_id=package.id,
            question_text=f"Q{number}",
            option_a="a", option_b="b", option_c="c", option_d="d", option_e="e",
            correct_answer="C",
            order_number=number,
        )

    questions = await service.get_questions_by_package(package.id)
    assert [q.order_number for q in questions] == [1, 2, 3]
    assert all(q.correct_answer == AnswerOption.C for q in questions)
    assert all(q.explanation is None for q in questions)


async def test_create_question_in_missing_package(db_session):
    with pytest.raises(NotFoundError):
        await QuestionService(db_session).create_question(
            quiz_package_id=999,
            question_text="Q",
            option_a="a", option_b="b", option_c="c", option_d="d", option_e="e",
            correct_answer="A",
            order_number=1,
        )


async def test_update_question(db_session, question_ids):
    service = QuestionService(db_session)
    updated = await service.update_question(question_ids[0], correct_answer="E", explanation=None)
    assert updated.correct_answer == AnswerOption.E
    assert updated.explanation is None
    assert updated.question_text == "Question 1"


async def test_delete_question_updates_total(db_session, package, question_ids):
    total = await QuestionService(db_session).delete_question(question_ids[0])
    assert total == 2

    refreshed = await PackageService(db_session).get_package(package.id)
    await db_session.refresh(refreshed)
    assert refreshed.total_questions == 2


async def test_delete_missing_question(db_session):
    with pytest.raises(NotFoundError):
        await QuestionService(db_session).delete_question(999)


async def test_answered_question_cannot_be_deleted(db_session, user, package, question_ids):
    sessions = SessionService(db_session)
    session = await sessions.start_session(user.id, package.id)
    await sessions.complete_session(session.id, [{"question_id": question_ids[0], "selected_answer": "B"}])

    with pytest.raises(InvalidStateError):
        await QuestionService(db_session).delete_question(question_ids[0])
    assert await QuestionService(db_session).count_questions(package.id) == 3
