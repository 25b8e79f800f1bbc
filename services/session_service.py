from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from models.session import QuizSession, UserAnswer
from models.quiz import QuizPackage, Question, AnswerOption
from models.user import User
from models.base import utcnow
from core.exceptions import (
    NotFoundError,
    InactivePackageError,
    EmptyPackageError,
    SessionAlreadyCompletedError,
    UnknownQuestionError,
    DuplicateAnswerError,
)
from core.logger import logger
from utils.scoring import score_percentage, elapsed_minutes

class SessionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_session(self, session_id: int) -> Optional[QuizSession]:
        result = await self.db.execute(select(QuizSession).filter(QuizSession.id == session_id))
        return result.scalar_one_or_none()

    async def start_session(self, user_id: int, quiz_package_id: int) -> QuizSession:
        # 1. User must exist
        result = await self.db.execute(select(User.id).filter(User.id == user_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"User with ID {user_id} not found")

        # 2. Package must exist and be active
        result = await self.db.execute(select(QuizPackage).filter(QuizPackage.id == quiz_package_id))
        package = result.scalar_one_or_none()
        if not package:
            raise NotFoundError(f"Quiz package with ID {quiz_package_id} not found")
        if not package.is_active:
            raise InactivePackageError(f"Quiz package with ID {quiz_package_id} is not active")

        # 3. Live count, the package's cached counter is not trusted here
        result = await self.db.execute(
            select(func.count(Question.id)).filter(Question.quiz_package_id == quiz_package_id)
        )
        total_questions = result.scalar() or 0
        if total_questions == 0:
            raise EmptyPackageError(f"Quiz package with ID {quiz_package_id} has no questions")

        session = QuizSession(
            user_id=user_id,
            quiz_package_id=quiz_package_id,
            started_at=utcnow(),
            time_remaining_seconds=package.time_limit_minutes * 60,
            total_questions=total_questions,
            is_completed=False,
            completed_at=None,
            total_score=None,
            total_correct=None,
        )
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)
        logger.info("Quiz session created", user_id=user_id, session_id=session.id, package_id=quiz_package_id)
        return session

    async def get_active_session(self, user_id: int) -> Optional[QuizSession]:
        """Most recently started incomplete session of the user."""
        result = await self.db.execute(
            select(QuizSession)
            .filter(QuizSession.user_id == user_id, QuizSession.is_completed == False)
            .order_by(QuizSession.started_at.desc(), QuizSession.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update_session(
        self,
        session_id: int,
        time_remaining_seconds: Optional[int] = None,
        is_completed: Optional[bool] = None,
    ) -> QuizSession:
        """Heartbeat from the client timer. Applies only the provided fields."""
        session = await self.get_session(session_id)
        if not session:
            raise NotFoundError(f"Quiz session with ID {session_id} not found")
        # A scored session is final; a flag-only completion can still be toggled
        if session.total_score is not None:
            raise SessionAlreadyCompletedError("Quiz session is already completed")

        if time_remaining_seconds is not None:
            session.time_remaining_seconds = time_remaining_seconds
        if is_completed is not None:
            session.is_completed = is_completed
            # completed_at is stamped on true but never cleared on false
            if is_completed:
                session.completed_at = utcnow()

        await self.db.commit()
        await self.db.refresh(session)
        logger.debug("Quiz session updated", session_id=session_id, time_remaining_seconds=session.time_remaining_seconds)
        return session

    async def complete_session(self, session_id: int, answers: List[dict]) -> dict:
        """
        Score a session and persist the submitted answers.

        ``answers`` is a list of ``{"question_id": int, "selected_answer": "A".."E"}``.
        The whole read-check-write sequence runs in one transaction with the
        session row locked, so a failure leaves neither answers nor score behind.
        """
        try:
            result = await self.db.execute(
                select(QuizSession, QuizPackage.title)
                .join(QuizPackage, QuizSession.quiz_package_id == QuizPackage.id)
                .filter(QuizSession.id == session_id)
                .with_for_update(of=QuizSession)
                .execution_options(populate_existing=True)
            )
            row = result.first()
            if row is None:
                raise NotFoundError("Quiz session not found")
            session, package_title = row

            if session.is_completed:
                raise SessionAlreadyCompletedError("Quiz session is already completed")

            result = await self.db.execute(
                select(Question.id, Question.correct_answer)
                .filter(Question.quiz_package_id == session.quiz_package_id)
            )
            correct_answers = {question_id: correct for question_id, correct in result.all()}

            # Validate everything before the first write
            graded = []
            seen = set()
            for answer in answers:
                question_id = answer["question_id"]
                if question_id not in correct_answers:
                    raise UnknownQuestionError(f"Question {question_id} not found in quiz package")
                if question_id in seen:
                    raise DuplicateAnswerError(f"Question {question_id} answered more than once")
                seen.add(question_id)

                selected = AnswerOption(answer["selected_answer"])
                graded.append((question_id, selected, selected == correct_answers[question_id]))

            now = utcnow()
            if graded:
                self.db.add_all([
                    UserAnswer(
                        session_id=session_id,
                        question_id=question_id,
                        selected_answer=selected,
                        is_correct=is_correct,
                        answered_at=now,
                    )
                    for question_id, selected, is_correct in graded
                ])

            # Unanswered questions count as wrong: the denominator is the snapshot
            total_correct = sum(1 for _, _, is_correct in graded if is_correct)
            total_score = score_percentage(total_correct, session.total_questions)

            session.completed_at = now
            session.total_correct = total_correct
            session.total_score = total_score
            session.is_completed = True
            session.time_remaining_seconds = 0

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Quiz session completed",
            session_id=session_id,
            user_id=session.user_id,
            total_correct=total_correct,
            total_score=total_score,
        )
        return {
            "session_id": session.id,
            "user_id": session.user_id,
            "quiz_package_title": package_title,
            "total_questions": session.total_questions,
            "total_correct": total_correct,
            "total_score": total_score,
            "completion_time_minutes": elapsed_minutes(session.started_at, now),
            "completed_at": now,
        }
