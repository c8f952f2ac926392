import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from core.db import create_engine_for, init_models
from agenda_store import AgendaStore


# 테스트마다 새 SQLite 파일 DB 사용 (동시성 테스트를 위해 메모리 DB 대신 파일)
@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def engine(db_url):
    engine = create_engine_for(db_url)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return AgendaStore(session_factory)


@pytest_asyncio.fixture
async def alice(store):
    return await store.create_user("a@x.com", "alice", "hash1", True)


@pytest_asyncio.fixture
async def bob(store):
    return await store.create_user("b@x.com", "bob", "hash2", True)
