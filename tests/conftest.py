from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

import freelance_credits.models  # noqa: F401 (registers models with Base.metadata)
from freelance_credits.core.config import settings
from freelance_credits.core.database import Base, get_db
from freelance_credits.main import app as fastapi_app
from freelance_credits.models import FreelancerProfile, ProjectTask, User

settings.DEBUG = True

# In-memory SQLite for tests, no PostgreSQL dependency needed.
# SQLite ignores FOR UPDATE, so lock-based tests run sequentially and the
# lock clauses are checked by compiling against the PostgreSQL dialect.
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sql_log():
    """Raw SQL sent to the test database while the test runs."""
    statements: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    yield statements
    event.remove(engine, "before_cursor_execute", _record)


@pytest.fixture
def postgres_sql(db):
    """Statements passed to ``db.execute``, compiled for PostgreSQL."""
    compiled: list[str] = []
    execute = db.execute

    def _compile_and_execute(statement, *args, **kwargs):
        compiled.append(str(statement.compile(dialect=postgresql.dialect())))
        return execute(statement, *args, **kwargs)

    with patch.object(db, "execute", side_effect=_compile_and_execute):
        yield compiled


@pytest.fixture
def freelancer(db) -> User:
    """A videographer with an empty freelancer profile."""
    user = User(
        email="freelancer@example.com",
        first_name="Asha",
        last_name="Rai",
        role_name=User.ROLE_VIDEOGRAPHER,
    )
    db.add(user)
    db.flush()
    db.add(FreelancerProfile(user_id=user.user_id))
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def profile(db, freelancer) -> FreelancerProfile:
    return freelancer.freelancer_profile


@pytest.fixture
def admin_user(db) -> User:
    user = User(
        email="admin@example.com",
        first_name="Admin",
        last_name="User",
        role_name=User.ROLE_ADMIN,
        is_admin=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client_user(db) -> User:
    """A hiring client — not a freelancer, has no profile."""
    user = User(
        email="client@example.com",
        first_name="Client",
        last_name="User",
        role_name=User.ROLE_CLIENT,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def project(db, client_user) -> ProjectTask:
    task = ProjectTask(client_id=client_user.user_id, project_title="Wedding highlight reel")
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@pytest.fixture
def client(db):
    """TestClient with overridden DB dependency."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()
