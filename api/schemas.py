from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from models.user import UserRole
from models.quiz import AnswerOption

# === Users & auth ===

class UserCreate(BaseModel):
    """Request body for registering a user."""
    username: str = Field(..., description="Unique, case-sensitive login name", min_length=3, max_length=255)
    password: str = Field(..., description="Plain password, stored as a bcrypt hash", min_length=4, max_length=72)
    role: UserRole = Field(UserRole.user, description="admin accounts can only be created by an admin")


class UserUpdate(BaseModel):
    """Administrative change of password and/or role."""
    password: Optional[str] = Field(None, min_length=4, max_length=72)
    role: Optional[UserRole] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str = Field(..., description="Send as `Authorization: Bearer <token>` or `X-Auth-Token`")
    user: UserOut


# === Quiz packages ===

class PackageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, examples=["Tryout SKD CPNS #1"])
    description: Optional[str] = None
    time_limit_minutes: int = Field(120, gt=0, description="Countdown budget for one attempt")
    is_active: bool = True


class PackageUpdate(BaseModel):
    """Partial update; omitted fields stay untouched, description may be set to null."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    time_limit_minutes: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class PackageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str]
    time_limit_minutes: int
    total_questions: int
    is_active: bool
    created_by: int
    created_at: datetime
    updated_at: datetime


# === Questions ===

class QuestionCreate(BaseModel):
    quiz_package_id: int
    question_text: str = Field(..., min_length=1)
    option_a: str = Field(..., min_length=1)
    option_b: str = Field(..., min_length=1)
    option_c: str = Field(..., min_length=1)
    option_d: str = Field(..., min_length=1)
    option_e: str = Field(..., min_length=1)
    correct_answer: AnswerOption
    explanation: Optional[str] = None
    order_number: int = Field(..., gt=0, description="Display order inside the package")


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = Field(None, min_length=1)
    option_a: Optional[str] = Field(None, min_length=1)
    option_b: Optional[str] = Field(None, min_length=1)
    option_c: Optional[str] = Field(None, min_length=1)
    option_d: Optional[str] = Field(None, min_length=1)
    option_e: Optional[str] = Field(None, min_length=1)
    correct_answer: Optional[AnswerOption] = None
    explanation: Optional[str] = None
    order_number: Optional[int] = Field(None, gt=0)


class QuestionPublic(BaseModel):
    """Question as shown while taking a quiz: no answer key."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    quiz_package_id: int
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    option_e: str
    order_number: int


class QuestionOut(QuestionPublic):
    correct_answer: AnswerOption
    explanation: Optional[str]
    created_at: datetime
    updated_at: datetime


# === Sessions ===

class SessionStart(BaseModel):
    quiz_package_id: int


class SessionUpdate(BaseModel):
    """Heartbeat from the client countdown."""
    time_remaining_seconds: Optional[int] = Field(None, ge=0)
    is_completed: Optional[bool] = None


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    quiz_package_id: int
    started_at: datetime
    completed_at: Optional[datetime]
    time_remaining_seconds: int
    total_score: Optional[int]
    total_correct: Optional[int]
    total_questions: int
    is_completed: bool


class SubmittedAnswer(BaseModel):
    question_id: int
    selected_answer: AnswerOption


class CompleteSessionRequest(BaseModel):
    answers: List[SubmittedAnswer] = Field(default_factory=list)


# === Results ===

class QuizResult(BaseModel):
    session_id: int
    user_id: int
    quiz_package_title: str
    total_questions: int
    total_correct: int
    total_score: int = Field(..., description="Percentage of the session's questions answered correctly")
    completion_time_minutes: int
    completed_at: datetime


class UserAnswerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    question_id: int
    selected_answer: AnswerOption
    is_correct: bool
    answered_at: datetime


class AnswerReview(BaseModel):
    question: QuestionOut
    user_answer: UserAnswerOut


class QuizResultDetails(QuizResult):
    answers: List[AnswerReview]


class UserStatistics(BaseModel):
    user_id: int
    total_quizzes_taken: int
    total_questions_answered: int
    total_correct_answers: int
    average_score: float
    best_score: int
    total_time_spent_minutes: int
    last_quiz_date: Optional[datetime]


# === Misc ===

class SuccessResponse(BaseModel):
    """Generic success response."""
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime
