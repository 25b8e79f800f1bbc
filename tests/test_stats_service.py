from datetime import timedelta

from models.base import utcnow
from models.quiz import AnswerOption
from models.session import UserAnswer
from services.session_service import SessionService
from services.stats_service import StatsService


async def _complete(db_session, user, package, answers):
    service = SessionService(db_session)
    session_id = (await service.start_session(user.id, package.id)).id
    await service.complete_session(session_id, answers)
    return session_id


async def test_results_newest_first(db_session, user, package, question_ids):
    first = await _complete(db_session, user, package, [{"question_id": question_ids[0], "selected_answer": "B"}])
    second = await _complete(db_session, user, package, [])
    # Incomplete sessions never show up
    await SessionService(db_session).start_session(user.id, package.id)

    results = await StatsService(db_session).get_quiz_results(user.id)
    assert [r["session_id"] for r in results] == [second, first]
    assert results[1]["total_score"] == 33
    assert results[1]["quiz_package_title"] == package.title


async def test_results_of_other_users_are_hidden(db_session, admin, user, package):
    await _complete(db_session, user, package, [])
    assert await StatsService(db_session).get_quiz_results(admin.id) == []


async def test_details_of_completed_session(db_session, user, package, question_ids):
    session_id = await _complete(db_session, user, package, [
        {"question_id": question_ids[2], "selected_answer": "D"},
        {"question_id": question_ids[0], "selected_answer": "C"},
    ])

    details = await StatsService(db_session).get_quiz_result_details(session_id)
    assert details["total_correct"] == 1
    assert details["total_score"] == 33
    # Recorded order, not question order
    assert [a["question"].id for a in details["answers"]] == [question_ids[2], question_ids[0]]
    assert details["answers"][0]["user_answer"].is_correct is True
    assert details["answers"][1]["user_answer"].selected_answer == AnswerOption.C
    assert details["answers"][1]["question"].correct_answer == AnswerOption.B


async def test_details_absent_for_incomplete_or_missing(db_session, user, package):
    session = await SessionService(db_session).start_session(user.id, package.id)
    stats = StatsService(db_session)
    assert await stats.get_quiz_result_details(session.id) is None
    assert await stats.get_quiz_result_details(999) is None


async def test_details_absent_for_incomplete_session_with_answers(db_session, user, package, question_ids):
    session = await SessionService(db_session).start_session(user.id, package.id)
    db_session.add_all([
        UserAnswer(
            session_id=session.id,
            question_id=qid,
            selected_answer=AnswerOption.B,
            is_correct=(qid == question_ids[0]),
            answered_at=utcnow(),
        )
        for qid in question_ids
    ])
    await db_session.commit()

    assert await StatsService(db_session).get_quiz_result_details(session.id) is None


async def test_details_absent_when_completed_by_flag_only(db_session, user, package):
    service = SessionService(db_session)
    session = await service.start_session(user.id, package.id)
    # Heartbeat completion sets the flag but leaves the score empty
    await service.update_session(session.id, is_completed=True)
    assert await StatsService(db_session).get_quiz_result_details(session.id) is None


async def test_statistics_without_sessions(db_session, user):
    stats = await StatsService(db_session).get_user_statistics(user.id)
    assert stats == {
        "user_id": user.id,
        "total_quizzes_taken": 0,
        "total_questions_answered": 0,
        "total_correct_answers": 0,
        "average_score": 0,
        "best_score": 0,
        "total_time_spent_minutes": 0,
        "last_quiz_date": None,
    }


async def test_statistics_over_completed_sessions(db_session, user, package, question_ids):
    # 1 of 3 correct -> 33
    await _complete(db_session, user, package, [
        {"question_id": question_ids[0], "selected_answer": "B"},
        {"question_id": question_ids[1], "selected_answer": "C"},
    ])
    # 2 of 3 correct -> 67
    last = await _complete(db_session, user, package, [
        {"question_id": question_ids[0], "selected_answer": "B"},
        {"question_id": question_ids[1], "selected_answer": "A"},
        {"question_id": question_ids[2], "selected_answer": "E"},
    ])
    service = SessionService(db_session)
    await service.start_session(user.id, package.id)

    # Stretch the last attempt to 30 minutes
    stored = await service.get_session(last)
    stored.started_at = stored.completed_at - timedelta(minutes=30)
    await db_session.commit()

    stats = await StatsService(db_session).get_user_statistics(user.id)
    assert stats["total_quizzes_taken"] == 2
    assert stats["total_questions_answered"] == 5
    assert stats["total_correct_answers"] == 3
    assert stats["average_score"] == 50
    assert stats["best_score"] == 67
    assert stats["total_time_spent_minutes"] == 30
    assert stats["last_quiz_date"] == stored.completed_at


async def test_statistics_skip_sessions_completed_by_flag_only(db_session, user, package, question_ids):
    await _complete(db_session, user, package, [{"question_id": question_ids[0], "selected_answer": "B"}])
    service = SessionService(db_session)
    flagged = await service.start_session(user.id, package.id)
    await service.update_session(flagged.id, is_completed=True)

    stats = await StatsService(db_session).get_user_statistics(user.id)
    assert stats["total_quizzes_taken"] == 1
    assert stats["average_score"] == 33
    assert stats["best_score"] == 33
    assert stats["total_questions_answered"] == 1
