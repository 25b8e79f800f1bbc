import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional, Union

import structlog
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import get_current_user, get_optional_user, require_admin
from api.schemas import (
    UserCreate, UserUpdate, UserOut, LoginRequest, LoginResponse,
    PackageCreate, PackageUpdate, PackageOut,
    QuestionCreate, QuestionUpdate, QuestionOut, QuestionPublic,
    SessionStart, SessionUpdate, SessionOut, CompleteSessionRequest,
    QuizResult, QuizResultDetails, UserStatistics,
    SuccessResponse, HealthResponse,
)
from core.config import Settings, settings as default_settings
from core.exceptions import ServiceError, NotFoundError, PermissionDeniedError
from core.logger import logger
from core.security import create_token
from db.session import Database, get_db
from models.user import User, UserRole
from services.user_service import UserService
from services.package_service import PackageService
from services.question_service import QuestionService
from services.session_service import SessionService
from services.stats_service import StatsService

# API Documentation
API_DESCRIPTION = """
## CPNS Quiz API

Exam practice platform: admins manage timed quiz packages and their
questions, users take timed sessions and review their scores.

### Authentication

`POST /api/auth/login` returns a signed token. Send it with every request as
`Authorization: Bearer <token>` (or `X-Auth-Token: <token>`).

### Errors

Business rule failures come back as
`{"success": false, "error": "<code>", "message": "..."}`.
"""

TAGS_METADATA = [
    {"name": "auth", "description": "Registration and login."},
    {"name": "users", "description": "User administration."},
    {"name": "packages", "description": "Quiz package catalog (admin managed)."},
    {"name": "questions", "description": "Questions inside a package (admin managed)."},
    {"name": "sessions", "description": "Timed quiz attempts: start, heartbeat, completion."},
    {"name": "results", "description": "Scores, answer review and statistics."},
    {"name": "info", "description": "Public information endpoints."},
]


async def _get_accessible_session(db: AsyncSession, session_id: int, user: User):
    session = await SessionService(db).get_session(session_id)
    if not session:
        raise NotFoundError("Quiz session not found")
    if session.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError("Quiz session belongs to another user")
    return session


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.AUTO_CREATE_TABLES:
            await database.create_all()
        logger.info("API started", env=settings.ENV, database=database.engine.url.render_as_string(hide_password=True))
        yield
        await database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description=API_DESCRIPTION,
        version=settings.APP_VERSION,
        openapi_tags=TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=uuid.uuid4().hex[:12])
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        logger.warning("Request rejected", path=request.url.path, error=exc.code, message=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.code, "message": exc.message},
        )

    # === Info ===

    @app.get("/health", response_model=HealthResponse, tags=["info"], summary="Health check")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc)}

    # === Auth & users ===

    @app.post(
        "/api/users",
        response_model=UserOut,
        status_code=201,
        tags=["auth"],
        summary="Register a user",
        responses={403: {"description": "Only admins can create admin accounts"}, 409: {"description": "Username taken"}},
    )
    async def create_user(
        payload: UserCreate,
        actor: Optional[User] = Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
    ):
        if payload.role == UserRole.admin and not (actor and actor.is_admin):
            raise PermissionDeniedError("Only admin users can create admin accounts")
        return await UserService(db).create_user(payload.username, payload.password, payload.role)

    @app.post("/api/auth/login", response_model=LoginResponse, tags=["auth"], summary="Log in")
    async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
        user = await UserService(db).authenticate(payload.username, payload.password)
        return {"token": create_token(user.id, settings.SECRET_KEY), "user": user}

    @app.get("/api/users/me", response_model=UserOut, tags=["users"], summary="Current user")
    async def read_me(user: User = Depends(get_current_user)):
        return user

    @app.get("/api/users", response_model=List[UserOut], tags=["users"], summary="List users")
    async def list_users(admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
        return await UserService(db).list_users()

    @app.patch("/api/users/{user_id}", response_model=UserOut, tags=["users"], summary="Change password or role")
    async def update_user(
        user_id: int,
        payload: UserUpdate,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ):
        return await UserService(db).update_user(user_id, password=payload.password, role=payload.role)

    # === Packages ===

    @app.get(
        "/api/packages",
        response_model=List[PackageOut],
        tags=["packages"],
        summary="List quiz packages",
        description="Admins see every package, other callers only active ones.",
    )
    async def list_packages(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        return await PackageService(db).list_packages(user.id)

    @app.get("/api/packages/{package_id}", response_model=PackageOut, tags=["packages"], summary="Get a package")
    async def get_package(package_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        package = await PackageService(db).get_package(package_id)
        if not package or (not package.is_active and not user.is_admin):
            raise NotFoundError("Quiz package not found")
        return package

    @app.post("/api/packages", response_model=PackageOut, status_code=201, tags=["packages"], summary="Create a package")
    async def create_package(
        payload: PackageCreate,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ):
        return await PackageService(db).create_package(created_by=admin.id, **payload.model_dump())

    @app.patch("/api/packages/{package_id}", response_model=PackageOut, tags=["packages"], summary="Update a package")
    async def update_package(
        package_id: int,
        payload: PackageUpdate,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ):
        return await PackageService(db).update_package(package_id, **payload.model_dump(exclude_unset=True))

    @app.delete(
        "/api/packages/{package_id}",
        response_model=SuccessResponse,
        tags=["packages"],
        summary="Soft delete a package",
        responses={404: {"description": "Package not found"}, 409: {"description": "Package already deleted"}},
    )
    async def delete_package(package_id: int, admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
        await PackageService(db).delete_package(package_id)
        return {"success": True, "message": "Quiz package deleted successfully"}

    @app.get(
        "/api/packages/{package_id}/questions",
        response_model=List[Union[QuestionOut, QuestionPublic]],
        tags=["questions"],
        summary="Questions of a package",
        description="Ordered by order_number. Only admins receive the answer key and explanations.",
    )
    async def list_questions(package_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        questions = await QuestionService(db).get_questions_by_package(package_id)
        schema = QuestionOut if user.is_admin else QuestionPublic
        return [schema.model_validate(q) for q in questions]

    # === Questions ===

    @app.post("/api/questions", response_model=QuestionOut, status_code=201, tags=["questions"], summary="Create a question")
    async def create_question(payload: QuestionCreate, admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
        return await QuestionService(db).create_question(**payload.model_dump())

    @app.patch("/api/questions/{question_id}", response_model=QuestionOut, tags=["questions"], summary="Update a question")
    async def update_question(
        question_id: int,
        payload: QuestionUpdate,
        admin: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ):
        return await QuestionService(db).update_question(question_id, **payload.model_dump(exclude_unset=True))

    @app.delete("/api/questions/{question_id}", response_model=SuccessResponse, tags=["questions"], summary="Delete a question")
    async def delete_question(question_id: int, admin: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
        await QuestionService(db).delete_question(question_id)
        return {"success": True, "message": "Question deleted successfully"}

    # === Sessions ===

    @app.post("/api/sessions", response_model=SessionOut, status_code=201, tags=["sessions"], summary="Start a quiz session")
    async def start_session(payload: SessionStart, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        return await SessionService(db).start_session(user.id, payload.quiz_package_id)

    @app.get(
        "/api/sessions/active",
        response_model=Optional[SessionOut],
        tags=["sessions"],
        summary="Resume point",
        description="Most recently started incomplete session of the caller, or null.",
    )
    async def get_active_session(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        return await SessionService(db).get_active_session(user.id)

    @app.patch("/api/sessions/{session_id}", response_model=SessionOut, tags=["sessions"], summary="Timer heartbeat")
    async def update_session(
        session_id: int,
        payload: SessionUpdate,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ):
        await _get_accessible_session(db, session_id, user)
        return await SessionService(db).update_session(
            session_id,
            time_remaining_seconds=payload.time_remaining_seconds,
            is_completed=payload.is_completed,
        )

    @app.post(
        "/api/sessions/{session_id}/complete",
        response_model=QuizResult,
        tags=["sessions"],
        summary="Submit answers and score",
        responses={
            400: {"description": "Answer for a question outside the package"},
            404: {"description": "Session not found"},
            409: {"description": "Session already completed"},
        },
    )
    async def complete_session(
        session_id: int,
        payload: CompleteSessionRequest,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ):
        await _get_accessible_session(db, session_id, user)
        answers = [answer.model_dump() for answer in payload.answers]
        return await SessionService(db).complete_session(session_id, answers)

    # === Results ===

    @app.get("/api/results", response_model=List[QuizResult], tags=["results"], summary="Completed sessions, newest first")
    async def list_results(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        return await StatsService(db).get_quiz_results(user.id)

    @app.get(
        "/api/results/{session_id}",
        response_model=QuizResultDetails,
        tags=["results"],
        summary="Answer review of a completed session",
        responses={404: {"description": "Session missing or not completed"}},
    )
    async def get_result_details(session_id: int, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        await _get_accessible_session(db, session_id, user)
        details = await StatsService(db).get_quiz_result_details(session_id)
        if details is None:
            raise NotFoundError("Quiz result not available: session is not completed")
        return details

    @app.get("/api/statistics", response_model=UserStatistics, tags=["results"], summary="Performance summary")
    async def get_statistics(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
        return await StatsService(db).get_user_statistics(user.id)

    return app


app = create_app()
