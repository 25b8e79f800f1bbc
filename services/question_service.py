from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, update
from models.quiz import Question, QuizPackage, AnswerOption
from models.session import UserAnswer
from models.base import utcnow
from core.exceptions import NotFoundError, InvalidStateError
from core.logger import logger

UPDATABLE_FIELDS = (
    "question_text",
    "option_a",
    "option_b",
    "option_c",
    "option_d",
    "option_e",
    "correct_answer",
    "explanation",
    "order_number",
)

class QuestionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_questions(self, package_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Question.id)).filter(Question.quiz_package_id == package_id)
        )
        return result.scalar() or 0

    async def _sync_package_total(self, package_id: int) -> int:
        total = await self.count_questions(package_id)
        await self.db.execute(
            update(QuizPackage)
            .where(QuizPackage.id == package_id)
            .values(total_questions=total, updated_at=utcnow())
        )
        return total

    async def create_question(
        self,
        quiz_package_id: int,
        question_text: str,
        option_a: str,
        option_b: str,
        option_c: str,
        option_d: str,
        option_e: str,
        correct_answer: AnswerOption,
        order_number: int,
        explanation: Optional[str] = None,
    ) -> Question:
        result = await self.db.execute(select(QuizPackage.id).filter(QuizPackage.id == quiz_package_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Quiz package with ID {quiz_package_id} not found")

        question = Question(
            quiz_package_id=quiz_package_id,
            question_text=question_text,
            option_a=option_a,
            option_b=option_b,
            option_c=option_c,
            option_d=option_d,
            option_e=option_e,
            correct_answer=AnswerOption(correct_answer),
            explanation=explanation or None,
            order_number=order_number,
        )
        self.db.add(question)
        try:
            await self.db.flush()
            total = await self._sync_package_total(quiz_package_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(question)
        logger.info("Question created", question_id=question.id, package_id=quiz_package_id, total_questions=total)
        return question

    async def get_question(self, question_id: int) -> Optional[Question]:
        result = await self.db.execute(select(Question).filter(Question.id == question_id))
        return result.scalar_one_or_none()

    async def get_questions_by_package(self, package_id: int) -> List[Question]:
        result = await self.db.execute(
            select(Question)
            .filter(Question.quiz_package_id == package_id)
            .order_by(Question.order_number.asc(), Question.id.asc())
        )
        return result.scalars().all()

    async def update_question(self, question_id: int, **fields) -> Question:
        question = await self.get_question(question_id)
        if not question:
            raise NotFoundError(f"Question with ID {question_id} not found")

        changed = []
        for key, value in fields.items():
            if key not in UPDATABLE_FIELDS or (value is None and key != "explanation"):
                continue
            if key == "correct_answer" and value is not None:
                value = AnswerOption(value)
            setattr(question, key, value)
            changed.append(key)
        question.updated_at = utcnow()

        await self.db.commit()
        await self.db.refresh(question)
        logger.info("Question updated", question_id=question_id, fields=changed)
        return question

    async def delete_question(self, question_id: int) -> int:
        """Delete a question and return its package's new question count."""
        question = await self.get_question(question_id)
        if not question:
            raise NotFoundError("Question not found")

        answered = await self.db.execute(
            select(func.count(UserAnswer.id)).filter(UserAnswer.question_id == question_id)
        )
        if answered.scalar():
            raise InvalidStateError("Question has recorded answers and cannot be deleted")

        package_id = question.quiz_package_id
        try:
            await self.db.execute(delete(Question).where(Question.id == question_id))
            total = await self._sync_package_total(package_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Question deleted", question_id=question_id, package_id=package_id, total_questions=total)
        return total
