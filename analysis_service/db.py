from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from .settings import settings

engine = create_engine(settings.database_url, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS assignments (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        file_url TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS submissions (
        id TEXT PRIMARY KEY,
        assignment_id TEXT NOT NULL,
        student_id TEXT NOT NULL,
        content_text TEXT,
        file_url TEXT,
        ai_analysis_status TEXT NOT NULL DEFAULT 'pending',
        ai_feedback TEXT,
        submitted_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS student_weak_topics (
        id TEXT PRIMARY KEY,
        student_id TEXT NOT NULL,
        assignment_id TEXT NOT NULL,
        topic_name TEXT,
        confidence_score REAL,
        ai_explanation TEXT,
        position INTEGER NOT NULL DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_weak_topics_pair
        ON student_weak_topics (student_id, assignment_id);
    """,
)

def init_db(bind: Engine | None = None):
    with (bind or engine).begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))
