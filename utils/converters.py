"""Explicit row-to-record mapping.

Store operations never hand ORM instances to callers; every returned value is
built here from column values so that relation loading stays under the
store's control.
"""

from typing import Iterable, List, Optional

from models.agenda import Agenda
from models.role import Role
from models.user import User
from schemas.agenda import AgendaRead
from schemas.role import RoleRead
from schemas.user import UserRead


def role_to_record(model: Role) -> RoleRead:
    return RoleRead(id=model.id, role=model.role)


def agenda_to_record(model: Agenda) -> AgendaRead:
    return AgendaRead(
        id=model.id,
        user_id=model.usersid,
        day=model.day,
        time=model.time,
        accessible=model.accessible,
        note=model.note,
    )


def sort_agendas(agendas: Iterable[AgendaRead]) -> List[AgendaRead]:
    """Order agendas by weekday, then time, then id."""
    return sorted(agendas, key=lambda a: (a.day.ordinal, a.time, a.id))


def user_to_record(model: User, with_relations: bool = False) -> UserRead:
    """Map a User row to a record.

    Args:
        model: User row.
        with_relations: Read ``model.roles`` and ``model.agendas``. Only pass
            True when both collections were loaded by the query.

    Returns:
        UserRead with ``roles``/``agendas`` set to lists when relations were
        requested, otherwise None.
    """
    roles: Optional[List[RoleRead]] = None
    agendas: Optional[List[AgendaRead]] = None
    if with_relations:
        roles = sorted((role_to_record(r) for r in model.roles), key=lambda r: r.id)
        agendas = sort_agendas(agenda_to_record(a) for a in model.agendas)
    return UserRead(
        id=model.id,
        enabled=model.enabled,
        email=model.email,
        username=model.username,
        password=model.password,
        roles=roles,
        agendas=agendas,
    )
