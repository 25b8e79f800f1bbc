import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Enum
from models.base import Base, TimestampMixin

class AnswerOption(str, enum.Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

# Shared by questions.correct_answer and user_answers.selected_answer
answer_option_enum = Enum(AnswerOption, name="answer_option")

class QuizPackage(Base, TimestampMixin):
    __tablename__ = "quiz_packages"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    time_limit_minutes = Column(Integer, default=120, nullable=False)
    # Denormalized, recomputed whenever a question is added or removed
    total_questions = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

class Question(Base, TimestampMixin):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_package_id = Column(Integer, ForeignKey("quiz_packages.id"), index=True, nullable=False)
    question_text = Column(Text, nullable=False)
    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=False)
    option_d = Column(Text, nullable=False)
    option_e = Column(Text, nullable=False)
    correct_answer = Column(answer_option_enum, nullable=False)
    explanation = Column(Text, nullable=True)
    order_number = Column(Integer, nullable=False)
