import os
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

from models.base import Base

# .env 파일에서 환경변수 로드
load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./agenda.db")
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

# 싱글턴 엔진/세션
engine = None
SessionLocal = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite는 연결마다 FK 검사를 켜야 ON DELETE CASCADE가 동작함
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_engine_for(db_url, echo=False):
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    new_engine = create_async_engine(db_url, echo=echo, future=True, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def init_engine(db_url=None, echo=None):
    global engine, SessionLocal
    if engine is None:
        engine = create_engine_for(db_url or DATABASE_URL, DATABASE_ECHO if echo is None else echo)
        SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine


async def init_models(target_engine=None):
    # 테이블 생성 (마이그레이션 없이 사용할 때)
    import models  # noqa: F401  모델을 Base.metadata에 등록
    target_engine = target_engine or init_engine()
    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    global engine, SessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    SessionLocal = None


# Alembic용 동기 URL
SYNC_DATABASE_URL = DATABASE_URL.replace("+aiosqlite", "") if "+aiosqlite" in DATABASE_URL else DATABASE_URL


def get_db_url():
    return DATABASE_URL


def get_engine():
    return engine


def get_sessionmaker():
    if SessionLocal is None:
        init_engine()
    return SessionLocal


# FastAPI 의존성 주입용 세션 생성 함수
async def get_db():
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        yield session
