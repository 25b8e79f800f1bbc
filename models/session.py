from sqlalchemy import Column, Integer, ForeignKey, Boolean, DateTime
from models.base import Base, utcnow
from models.quiz import answer_option_enum

class QuizSession(Base):
    __tablename__ = "quiz_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    quiz_package_id = Column(Integer, ForeignKey("quiz_packages.id"), index=True, nullable=False)

    started_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    time_remaining_seconds = Column(Integer, nullable=False)

    # Populated only on completion
    total_score = Column(Integer, nullable=True)
    total_correct = Column(Integer, nullable=True)
    # Snapshot of the package's question count at start
    total_questions = Column(Integer, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)

class UserAnswer(Base):
    __tablename__ = "user_answers"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("quiz_sessions.id"), index=True, nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    selected_answer = Column(answer_option_enum, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    answered_at = Column(DateTime, default=utcnow, nullable=False)
