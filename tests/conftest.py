"""
Pytest configuration and fixtures for the quiz API tests.
"""
import sys
import os
import pytest
import pytest_asyncio
import httpx

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from core.security import create_token
from db.session import Database
from models.quiz import AnswerOption
from models.user import UserRole
from services.user_service import UserService
from services.package_service import PackageService
from services.question_service import QuestionService

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

# Answer key of the sample package, in order_number order
SAMPLE_KEY = [AnswerOption.B, AnswerOption.A, AnswerOption.D]


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}",
        SECRET_KEY="test-secret",
        DEFAULT_TIME_LIMIT_MINUTES=120,
        ENV="test",
    )


@pytest_asyncio.fixture
async def database(test_settings):
    db = Database.from_settings(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.sessionmaker() as session:
        yield session


@pytest_asyncio.fixture
async def admin(db_session):
    return await UserService(db_session).create_user("admin", "admin-pass", UserRole.admin)


@pytest_asyncio.fixture
async def user(db_session):
    return await UserService(db_session).create_user("alice", "alice-pass")


async def make_package(db_session, admin, key=SAMPLE_KEY, title="Tryout SKD #1", time_limit_minutes=90):
    package = await PackageService(db_session).create_package(
        created_by=admin.id,
        title=title,
        description="Sample tryout",
        time_limit_minutes=time_limit_minutes,
    )
    questions = QuestionService(db_session)
    for number, correct in enumerate(key, start=1):
        await questions.create_question(
            quiz_package_id=package.id,
            question_text=f"Question {number}",
            option_a="a", option_b="b", option_c="c", option_d="d", option_e="e",
            correct_answer=correct,
            order_number=number,
            explanation=f"Because {correct.value}",
        )
    await db_session.refresh(package)
    return package


@pytest_asyncio.fixture
async def package(db_session, admin):
    return await make_package(db_session, admin)


@pytest.fixture
def package_factory(db_session, admin):
    async def _make(**kwargs):
        return await make_package(db_session, admin, **kwargs)
    return _make


@pytest_asyncio.fixture
async def question_ids(db_session, package):
    questions = await QuestionService(db_session).get_questions_by_package(package.id)
    return [q.id for q in questions]


@pytest_asyncio.fixture
async def client(test_settings, database):
    from api.main import create_app

    app = create_app(settings=test_settings, database=database)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(test_settings):
    def _headers(user):
        return {"Authorization": f"Bearer {create_token(user.id, test_settings.SECRET_KEY)}"}
    return _headers
