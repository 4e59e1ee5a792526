import os
import tempfile

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')
os.environ.setdefault('UPLOAD_DIR', tempfile.mkdtemp(prefix='prep-uploads-'))

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from prep_backend.ai.client import AIProviderError, GeminiClient  # noqa: E402
from prep_backend.auth.passwords import hash_password  # noqa: E402
from prep_backend.database import Base  # noqa: E402
from prep_backend.models.interview_session import InterviewSession  # noqa: E402
from prep_backend.models.question import Question  # noqa: E402
from prep_backend.models.user import User  # noqa: E402

TABLES = [User.__table__, InterviewSession.__table__, Question.__table__]


class FakeGeminiClient(GeminiClient):
    """Returns a canned reply instead of calling Gemini."""

    def __init__(self, reply: str | None = None, error: Exception | None = None):
        super().__init__(api_key='test-key', model='test-model')
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise AIProviderError(str(self.error)) from self.error
        return self.reply


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def db(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(email: str = 'candidate@example.com', password: str = 'secret-pass', name: str = 'Candidate') -> User:
        user = User(name=name, email=email, hashed_password=hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_session(db):
    def _make_session(owner: User, questions: list[tuple[str, str]] | None = None) -> InterviewSession:
        interview_session = InterviewSession(
            user_id=owner.id,
            role='Backend Engineer',
            experience='3',
            topics_to_focus='Python, SQL',
        )
        interview_session.questions = [
            Question(question=question, answer=answer) for question, answer in (questions or [])
        ]
        db.add(interview_session)
        db.commit()
        db.refresh(interview_session)
        return interview_session

    return _make_session
