from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, case
from models.session import QuizSession, UserAnswer
from models.quiz import QuizPackage, Question
from utils.scoring import elapsed_minutes

class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_quiz_results(self, user_id: int) -> List[dict]:
        """Completed sessions of a user, newest first."""
        query = (
            select(
                QuizSession.id.label("session_id"),
                QuizSession.user_id,
                QuizPackage.title.label("quiz_package_title"),
                QuizSession.total_questions,
                QuizSession.total_correct,
                QuizSession.total_score,
                QuizSession.started_at,
                QuizSession.completed_at,
            )
            .join(QuizPackage, QuizSession.quiz_package_id == QuizPackage.id)
            .filter(QuizSession.user_id == user_id, QuizSession.is_completed == True)
            .order_by(desc(QuizSession.completed_at), desc(QuizSession.id))
        )
        result = await self.db.execute(query)

        return [{
            "session_id": row.session_id,
            "user_id": row.user_id,
            "quiz_package_title": row.quiz_package_title,
            "total_questions": row.total_questions,
            "total_correct": row.total_correct or 0,
            "total_score": row.total_score or 0,
            "completion_time_minutes": (
                elapsed_minutes(row.started_at, row.completed_at) if row.completed_at and row.started_at else 0
            ),
            "completed_at": row.completed_at,
        } for row in result.all()]

    async def get_quiz_result_details(self, session_id: int) -> Optional[dict]:
        """
        Review view of one completed session.

        Returns None when the session does not exist, is not completed or
        has no score yet, even if answer rows exist for it. Answers come back
        in the order they were recorded.
        """
        result = await self.db.execute(
            select(QuizSession, QuizPackage.title)
            .join(QuizPackage, QuizSession.quiz_package_id == QuizPackage.id)
            .filter(QuizSession.id == session_id)
        )
        row = result.first()
        if row is None:
            return None
        session, package_title = row

        if (
            not session.is_completed
            or session.completed_at is None
            or session.total_score is None
            or session.total_correct is None
        ):
            return None

        result = await self.db.execute(
            select(UserAnswer, Question)
            .join(Question, UserAnswer.question_id == Question.id)
            .filter(UserAnswer.session_id == session_id)
            .order_by(UserAnswer.id)
        )
        answers = [{"question": question, "user_answer": answer} for answer, question in result.all()]

        return {
            "session_id": session.id,
            "user_id": session.user_id,
            "quiz_package_title": package_title,
            "total_questions": session.total_questions,
            "total_correct": session.total_correct,
            "total_score": session.total_score,
            "completion_time_minutes": elapsed_minutes(session.started_at, session.completed_at),
            "completed_at": session.completed_at,
            "answers": answers,
        }

    async def get_user_statistics(self, user_id: int) -> dict:
        """
        Aggregate performance over the user's scored sessions.

        Sessions only flagged complete through the heartbeat carry no score
        and are left out of every figure.
        """
        scored = (
            QuizSession.user_id == user_id,
            QuizSession.is_completed == True,
            QuizSession.total_score.isnot(None),
        )
        result = await self.db.execute(
            select(QuizSession.total_score, QuizSession.started_at, QuizSession.completed_at)
            .filter(*scored)
        )
        sessions = result.all()

        answer_totals = await self.db.execute(
            select(
                func.count(UserAnswer.id),
                func.coalesce(func.sum(case((UserAnswer.is_correct == True, 1), else_=0)), 0),
            )
            .join(QuizSession, UserAnswer.session_id == QuizSession.id)
            .filter(*scored)
        )
        total_answered, total_correct = answer_totals.one()

        scores = [row.total_score for row in sessions]
        finished = [row for row in sessions if row.completed_at is not None]

        return {
            "user_id": user_id,
            "total_quizzes_taken": len(sessions),
            "total_questions_answered": int(total_answered or 0),
            "total_correct_answers": int(total_correct or 0),
            "average_score": round(sum(scores) / len(scores), 2) if scores else 0,
            "best_score": max(scores) if scores else 0,
            "total_time_spent_minutes": sum(
                max(elapsed_minutes(row.started_at, row.completed_at), 0) for row in finished
            ),
            "last_quiz_date": max((row.completed_at for row in finished), default=None),
        }
