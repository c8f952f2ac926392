"""Relational store for users, roles and agendas.

Every public method runs in its own short transaction and returns pydantic
records (see ``utils.converters``); ORM instances never leave this module.
Uniqueness is enforced by the database's unique constraints, so concurrent
creates with the same key resolve to exactly one success and a
DuplicateKeyError for the others.
"""

import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, insert, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from core.db import get_sessionmaker
from models.agenda import Agenda, DayOfWeek
from models.role import Role, users_to_roles
from models.user import User
from schemas.agenda import AgendaCreate, AgendaRead, AgendaUpdate
from schemas.role import RoleCreate, RoleRead
from schemas.user import UserCreate, UserRead
from utils.converters import agenda_to_record, role_to_record, sort_agendas, user_to_record
from utils.exceptions import DuplicateKeyError, ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _validate(schema, entity: str, **fields):
    try:
        return schema(**fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        value = fields.get(field) if field else None
        raise ValidationError(
            f"Invalid {entity}: {first.get('msg')}",
            entity=entity,
            field=field,
            value=value,
            dev_message=str(e),
        ) from e


class AgendaStore:
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_sessionmaker()

    # ------------------------------------------------------------------ users

    async def create_user(self, email: str, username: str, password: str, enabled: bool = True) -> UserRead:
        """Insert a user.

        ``password`` must already be hashed; the store persists it verbatim.

        Raises:
            DuplicateKeyError: email or username already exists.
            ValidationError: a field is blank, too long or malformed.
        """
        data = _validate(UserCreate, "user", email=email, username=username, password=password, enabled=enabled)
        async with self._session_factory() as db:
            result = await db.execute(
                select(User).where(or_(User.username == data.username, User.email == data.email))
            )
            existing = result.scalars().first()
            if existing is not None:
                field = "username" if existing.username == data.username else "email"
                logger.warning("rejected user create: duplicate %s", field)
                raise DuplicateKeyError(
                    f"User with {field} '{getattr(data, field)}' already exists",
                    entity="user", field=field, value=getattr(data, field),
                )
            user = User(email=data.email, username=data.username, password=data.password, enabled=data.enabled)
            db.add(user)
            try:
                await db.commit()
            except IntegrityError as e:
                # 동시 요청이 사전 검사를 모두 통과한 경우 unique 제약이 잡아냄
                await db.rollback()
                logger.warning("rejected user create: unique constraint on users")
                raise DuplicateKeyError(
                    f"User '{data.username}' or email '{data.email}' already exists",
                    entity="user", field=_violated_column(e, ("username", "email")),
                    dev_message=str(e.orig),
                ) from e
            logger.info("Created user id=%s username=%s", user.id, user.username)
            return user_to_record(user)

    async def get_user(self, user_id: int, with_relations: bool = True) -> UserRead:
        async with self._session_factory() as db:
            user = await self._load_user(db, User.id == user_id, with_relations)
            if user is None:
                raise NotFoundError(f"User {user_id} not found", entity="user", field="id", value=user_id)
            return user_to_record(user, with_relations)

    async def find_user_by_username(self, username: str, with_relations: bool = True) -> UserRead:
        """Look up a user by login name, with roles and agendas by default."""
        username = username.strip()
        async with self._session_factory() as db:
            user = await self._load_user(db, User.username == username, with_relations)
            if user is None:
                raise NotFoundError(
                    f"User '{username}' not found", entity="user", field="username", value=username
                )
            return user_to_record(user, with_relations)

    async def find_user_by_email(self, email: str) -> UserRead:
        email = email.strip()
        async with self._session_factory() as db:
            user = await self._load_user(db, User.email == email, False)
            if user is None:
                raise NotFoundError(f"User with email '{email}' not found", entity="user", field="email", value=email)
            return user_to_record(user)

    async def list_users(self) -> List[UserRead]:
        async with self._session_factory() as db:
            result = await db.execute(select(User).order_by(User.id))
            return [user_to_record(u) for u in result.scalars().all()]

    async def set_user_enabled(self, username: str, enabled: bool) -> None:
        """Ban (``enabled=False``) or unban a user in a single UPDATE."""
        username = username.strip()
        async with self._session_factory() as db:
            result = await db.execute(
                update(User).where(User.username == username).values(enabled=bool(enabled))
            )
            if result.rowcount == 0:
                await db.rollback()
                raise NotFoundError(
                    f"User '{username}' not found", entity="user", field="username", value=username
                )
            await db.commit()
        logger.info("%s user %s", "Enabled" if enabled else "Disabled", username)

    async def delete_user(self, user_id: int) -> None:
        """Delete a user together with its agendas and role associations."""
        async with self._session_factory() as db:
            user = await self._load_user(db, User.id == user_id, True)
            if user is None:
                raise NotFoundError(f"User {user_id} not found", entity="user", field="id", value=user_id)
            agenda_count = len(user.agendas)
            await db.delete(user)
            await db.commit()
        logger.info("Deleted user id=%s (cascaded %d agendas)", user_id, agenda_count)

    async def _load_user(self, db: AsyncSession, criterion, with_relations: bool) -> Optional[User]:
        stmt = select(User).where(criterion)
        if with_relations:
            stmt = stmt.options(selectinload(User.roles), selectinload(User.agendas))
        result = await db.execute(stmt)
        return result.scalars().first()

    # ------------------------------------------------------------------ roles

    async def create_role(self, name: str) -> RoleRead:
        data = _validate(RoleCreate, "role", role=name)
        async with self._session_factory() as db:
            result = await db.execute(select(Role).where(Role.role == data.role))
            if result.scalars().first() is not None:
                logger.warning("rejected role create: duplicate role %s", data.role)
                raise DuplicateKeyError(
                    f"Role '{data.role}' already exists", entity="role", field="role", value=data.role
                )
            role = Role(role=data.role)
            db.add(role)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                logger.warning("rejected role create: unique constraint on roles")
                raise DuplicateKeyError(
                    f"Role '{data.role}' already exists", entity="role", field="role", value=data.role,
                    dev_message=str(e.orig),
                ) from e
            logger.info("Created role id=%s role=%s", role.id, role.role)
            return role_to_record(role)

    async def get_role_by_name(self, name: str) -> RoleRead:
        name = name.strip()
        async with self._session_factory() as db:
            result = await db.execute(select(Role).where(Role.role == name))
            role = result.scalars().first()
            if role is None:
                raise NotFoundError(f"Role '{name}' not found", entity="role", field="role", value=name)
            return role_to_record(role)

    async def list_roles(self) -> List[RoleRead]:
        async with self._session_factory() as db:
            result = await db.execute(select(Role).order_by(Role.id))
            return [role_to_record(r) for r in result.scalars().all()]

    async def delete_role(self, role_id: int) -> None:
        async with self._session_factory() as db:
            role = await db.get(Role, role_id)
            if role is None:
                raise NotFoundError(f"Role {role_id} not found", entity="role", field="id", value=role_id)
            await db.execute(delete(users_to_roles).where(users_to_roles.c.rolesid == role_id))
            await db.delete(role)
            await db.commit()
        logger.info("Deleted role id=%s", role_id)

    async def assign_role(self, user_id: int, role_id: int) -> None:
        """Associate a role with a user. Assigning an existing pair is a no-op."""
        async with self._session_factory() as db:
            await self._require_user_and_role(db, user_id, role_id)
            if await self._has_role(db, user_id, role_id):
                logger.debug("user %s already holds role %s", user_id, role_id)
                return
            try:
                await db.execute(insert(users_to_roles).values(usersid=user_id, rolesid=role_id))
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                # 동시에 같은 쌍이 추가되었으면 멱등 처리, 아니면 참조 행이 사라진 것
                async with self._session_factory() as check:
                    if await self._has_role(check, user_id, role_id):
                        return
                raise NotFoundError(
                    f"User {user_id} or role {role_id} no longer exists", entity="users_to_roles",
                    dev_message=str(e.orig),
                ) from e
        logger.info("Assigned role %s to user %s", role_id, user_id)

    async def revoke_role(self, user_id: int, role_id: int) -> None:
        """Remove a role from a user. Revoking an absent pair is a no-op."""
        async with self._session_factory() as db:
            await self._require_user_and_role(db, user_id, role_id)
            result = await db.execute(
                delete(users_to_roles).where(
                    users_to_roles.c.usersid == user_id, users_to_roles.c.rolesid == role_id
                )
            )
            await db.commit()
        if result.rowcount:
            logger.info("Revoked role %s from user %s", role_id, user_id)

    async def _require_user_and_role(self, db: AsyncSession, user_id: int, role_id: int) -> None:
        if await db.get(User, user_id) is None:
            raise NotFoundError(f"User {user_id} not found", entity="user", field="id", value=user_id)
        if await db.get(Role, role_id) is None:
            raise NotFoundError(f"Role {role_id} not found", entity="role", field="id", value=role_id)

    async def _has_role(self, db: AsyncSession, user_id: int, role_id: int) -> bool:
        result = await db.execute(
            select(users_to_roles.c.usersid).where(
                users_to_roles.c.usersid == user_id, users_to_roles.c.rolesid == role_id
            )
        )
        return result.first() is not None

    # ---------------------------------------------------------------- agendas

    async def create_agenda(self, user_id: int, day, time: str, accessible: bool, note: str) -> AgendaRead:
        """Insert an agenda entry owned by ``user_id``.

        Raises:
            NotFoundError: the user does not exist.
            ValidationError: ``time`` is not HH:MM or ``day`` is not a weekday.
        """
        data = _validate(AgendaCreate, "agenda", user_id=user_id, day=day, time=time, accessible=accessible, note=note)
        async with self._session_factory() as db:
            if await db.get(User, data.user_id) is None:
                raise NotFoundError(f"User {data.user_id} not found", entity="user", field="id", value=data.user_id)
            agenda = Agenda(
                usersid=data.user_id, day=data.day, time=data.time, accessible=data.accessible, note=data.note
            )
            db.add(agenda)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise NotFoundError(
                    f"User {data.user_id} no longer exists", entity="user", field="id", value=data.user_id,
                    dev_message=str(e.orig),
                ) from e
            logger.info("Created agenda id=%s for user %s", agenda.id, data.user_id)
            return agenda_to_record(agenda)

    async def get_agenda(self, agenda_id: int) -> AgendaRead:
        async with self._session_factory() as db:
            agenda = await db.get(Agenda, agenda_id)
            if agenda is None:
                raise NotFoundError(f"Agenda {agenda_id} not found", entity="agenda", field="id", value=agenda_id)
            return agenda_to_record(agenda)

    async def list_agendas_for_user(self, user_id: int, accessible_only: bool = False) -> List[AgendaRead]:
        """Agendas owned by ``user_id``; only the accessible ones if ``accessible_only``."""
        async with self._session_factory() as db:
            if await db.get(User, user_id) is None:
                raise NotFoundError(f"User {user_id} not found", entity="user", field="id", value=user_id)
            stmt = select(Agenda).where(Agenda.usersid == user_id)
            if accessible_only:
                stmt = stmt.where(Agenda.accessible.is_(True))
            result = await db.execute(stmt)
            return sort_agendas(agenda_to_record(a) for a in result.scalars().all())

    async def list_accessible_agendas(self, excluding_user_id: Optional[int] = None) -> List[AgendaRead]:
        """Accessible agendas of every user except ``excluding_user_id``."""
        async with self._session_factory() as db:
            stmt = select(Agenda).where(Agenda.accessible.is_(True))
            if excluding_user_id is not None:
                stmt = stmt.where(Agenda.usersid != excluding_user_id)
            result = await db.execute(stmt.order_by(Agenda.usersid, Agenda.id))
            agendas = [agenda_to_record(a) for a in result.scalars().all()]
        return sorted(agendas, key=lambda a: (a.user_id, a.day.ordinal, a.time, a.id))

    async def update_agenda(self, agenda_id: int, requesting_user_id: int, *, day: Optional[DayOfWeek] = None,
                            time: Optional[str] = None, accessible: Optional[bool] = None,
                            note: Optional[str] = None) -> AgendaRead:
        """Change the given fields of an agenda. Only its owner may do so."""
        changes = _validate(AgendaUpdate, "agenda", day=day, time=time, accessible=accessible, note=note)
        async with self._session_factory() as db:
            agenda = await self._owned_agenda(db, agenda_id, requesting_user_id, "update")
            for field, value in changes.model_dump(exclude_none=True).items():
                setattr(agenda, field, value)
            await db.commit()
            logger.info("Updated agenda id=%s", agenda_id)
            return agenda_to_record(agenda)

    async def delete_agenda(self, agenda_id: int, requesting_user_id: int) -> None:
        """Delete an agenda. Only its owner may do so."""
        async with self._session_factory() as db:
            agenda = await self._owned_agenda(db, agenda_id, requesting_user_id, "delete")
            await db.delete(agenda)
            await db.commit()
        logger.info("Deleted agenda id=%s", agenda_id)

    async def _owned_agenda(self, db: AsyncSession, agenda_id: int, requesting_user_id: int, action: str) -> Agenda:
        agenda = await db.get(Agenda, agenda_id)
        if agenda is None:
            raise NotFoundError(f"Agenda {agenda_id} not found", entity="agenda", field="id", value=agenda_id)
        if agenda.usersid != requesting_user_id:
            logger.warning("user %s may not %s agenda %s", requesting_user_id, action, agenda_id)
            raise ForbiddenError(
                f"User {requesting_user_id} may not {action} agenda {agenda_id}",
                entity="agenda", field="usersid", value=requesting_user_id,
            )
        return agenda


def _violated_column(error: IntegrityError, candidates) -> Optional[str]:
    # 드라이버 메시지에서 위반된 컬럼 추정 (예: "UNIQUE constraint failed: users.username")
    message = str(error.orig).lower()
    for column in candidates:
        if column in message:
            return column
    return None
