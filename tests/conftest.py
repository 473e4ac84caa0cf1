import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from analysis_service import main, repository
from analysis_service.db import init_db

ASSIGNMENT_PDF = "https://files.example/assignments/asg-1.pdf"
SUBMISSION_PDF = "https://files.example/submissions/sub-1.pdf"


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'analysis.db'}", future=True)
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    """sub-1 by stu-1 for asg-1, both files present, status pending."""
    repository.insert_assignment(db, "asg-1", "Operating Systems 1", ASSIGNMENT_PDF)
    repository.insert_submission(db, "sub-1", "asg-1", "stu-1", file_url=SUBMISSION_PDF)
    return db


@pytest.fixture
def client(session_factory, monkeypatch):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(main, "init_db", lambda: None)
    main.app.dependency_overrides[main.get_db] = _get_db
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()
