import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import argparse
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from agenda_store import AgendaStore
from core.db import create_engine_for, get_db_url, init_models
from utils.exceptions import DuplicateKeyError

logger = logging.getLogger(__name__)

DEFAULT_ROLES = ["ROLE_USER", "ROLE_ADMIN"]


async def seed_roles(store: AgendaStore, roles):
    """Create the given roles, skipping ones that already exist. Returns the names created."""
    created = []
    for name in roles:
        try:
            await store.create_role(name)
        except DuplicateKeyError:
            logger.info("role %s already exists", name)
            continue
        created.append(name)
    return created


async def init_db(db_url, roles):
    engine = create_engine_for(db_url)
    try:
        # 1. 테이블 생성 (없으면)
        await init_models(engine)
        # 2. 기본 역할 삽입
        store = AgendaStore(sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        return await seed_roles(store, roles)
    finally:
        await engine.dispose()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the agenda schema and default roles")
    parser.add_argument("--db-url", default=get_db_url(), help="SQLAlchemy async database URL")
    parser.add_argument("--role", action="append", dest="roles", help="Role to create (repeatable)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    created = asyncio.run(init_db(args.db_url, args.roles or DEFAULT_ROLES))
    print(f"{args.db_url} → 초기화 완료 (새 역할: {', '.join(created) or '없음'})")


if __name__ == "__main__":
    main()
