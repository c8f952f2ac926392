import asyncio

import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from models.user import User
from utils.exceptions import DuplicateKeyError, NotFoundError, ValidationError


async def count_users(session_factory):
    async with session_factory() as db:
        result = await db.execute(select(func.count()).select_from(User))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_create_user_assigns_id(store):
    user = await store.create_user("a@x.com", "alice", "hash1", True)
    assert user.id == 1
    assert user.username == "alice"
    assert user.email == "a@x.com"
    assert user.password == "hash1"
    assert user.enabled is True
    # 생성 결과에는 관계가 로드되지 않음
    assert user.roles is None and user.agendas is None


@pytest.mark.asyncio
async def test_create_user_enabled_defaults_to_true(store):
    user = await store.create_user("c@x.com", "carol", "hash3")
    assert user.enabled is True


@pytest.mark.asyncio
async def test_duplicate_username_rejected(store, session_factory, alice):
    with pytest.raises(DuplicateKeyError) as exc_info:
        await store.create_user("b@x.com", "alice", "hash2", True)
    assert exc_info.value.field == "username"
    assert exc_info.value.status_code == 409
    assert await count_users(session_factory) == 1


@pytest.mark.asyncio
async def test_duplicate_email_rejected(store, session_factory, alice):
    with pytest.raises(DuplicateKeyError) as exc_info:
        await store.create_user("a@x.com", "alice2", "hash2", True)
    assert exc_info.value.field == "email"
    assert await count_users(session_factory) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("email,username,password", [
    ("not-an-email", "dave", "h"),
    ("dave@", "dave", "h"),
    ("dave@example", "dave", "h"),
    ("da ve@x.com", "dave", "h"),
    ("d@x.com", "   ", "h"),
    ("d@x.com", "dave", ""),
    ("d@x.com", "d" * 51, "h"),
])
async def test_invalid_user_fields_rejected(store, session_factory, email, username, password):
    with pytest.raises(ValidationError):
        await store.create_user(email, username, password)
    assert await count_users(session_factory) == 0


@pytest.mark.asyncio
async def test_concurrent_duplicate_creates_only_one_succeeds(store, session_factory):
    results = await asyncio.gather(
        *[store.create_user(f"u{i}@x.com", "same", f"hash{i}") for i in range(5)],
        return_exceptions=True,
    )
    created = [r for r in results if not isinstance(r, Exception)]
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(created) == 1
    assert len(errors) == 4
    assert all(isinstance(e, DuplicateKeyError) for e in errors)
    assert await count_users(session_factory) == 1


@pytest.mark.asyncio
async def test_find_user_by_username_loads_relations(store, alice):
    role = await store.create_role("ROLE_USER")
    await store.assign_role(alice.id, role.id)
    agenda = await store.create_agenda(alice.id, "MONDAY", "09:30", True, "standup")

    found = await store.find_user_by_username("alice")
    assert found.id == alice.id
    assert found.password == "hash1"
    assert found.role_names == ["ROLE_USER"]
    assert [a.id for a in found.agendas] == [agenda.id]


@pytest.mark.asyncio
async def test_find_user_without_relations(store, alice):
    found = await store.find_user_by_username("alice", with_relations=False)
    assert found.id == alice.id
    assert found.roles is None
    assert found.agendas is None


@pytest.mark.asyncio
async def test_find_unknown_user(store):
    with pytest.raises(NotFoundError):
        await store.find_user_by_username("nobody")
    with pytest.raises(NotFoundError):
        await store.get_user(42)
    with pytest.raises(NotFoundError):
        await store.find_user_by_email("nobody@x.com")


@pytest.mark.asyncio
async def test_get_user_and_find_by_email(store, alice):
    by_id = await store.get_user(alice.id)
    assert by_id.username == "alice"
    assert by_id.roles == [] and by_id.agendas == []
    by_email = await store.find_user_by_email("a@x.com")
    assert by_email.id == alice.id


@pytest.mark.asyncio
async def test_list_users_ordered_without_relations(store, alice, bob):
    users = await store.list_users()
    assert [u.username for u in users] == ["alice", "bob"]
    assert all(u.roles is None for u in users)


@pytest.mark.asyncio
async def test_set_user_enabled_bans_and_unbans(store, alice):
    await store.set_user_enabled("alice", False)
    assert (await store.find_user_by_username("alice")).enabled is False
    await store.set_user_enabled("alice", True)
    assert (await store.find_user_by_username("alice")).enabled is True


@pytest.mark.asyncio
async def test_set_user_enabled_unknown_user(store):
    with pytest.raises(NotFoundError):
        await store.set_user_enabled("ghost", False)


@pytest.mark.asyncio
async def test_concurrent_reads_see_whole_record_during_ban(store, alice):
    async def read():
        user = await store.find_user_by_username("alice", with_relations=False)
        return (user.enabled, user.email)

    results = await asyncio.gather(store.set_user_enabled("alice", False), read(), read())
    for enabled, email in results[1:]:
        assert enabled in (True, False)
        assert email == "a@x.com"
    assert (await store.find_user_by_username("alice")).enabled is False


@pytest.mark.asyncio
async def test_delete_user_cascades_agendas_and_roles(store, alice, bob):
    role = await store.create_role("ROLE_USER")
    await store.assign_role(alice.id, role.id)
    await store.assign_role(bob.id, role.id)
    for day in ("MONDAY", "TUESDAY", "FRIDAY"):
        await store.create_agenda(alice.id, day, "10:00", True, "note")
    bob_agenda = await store.create_agenda(bob.id, "MONDAY", "11:00", True, "bob's")

    await store.delete_user(alice.id)

    with pytest.raises(NotFoundError):
        await store.get_user(alice.id)
    assert [a.id for a in await store.list_accessible_agendas()] == [bob_agenda.id]
    # 역할 자체와 다른 사용자의 매핑은 유지
    assert (await store.get_role_by_name("ROLE_USER")).id == role.id
    assert (await store.get_user(bob.id)).role_names == ["ROLE_USER"]


@pytest.mark.asyncio
async def test_delete_unknown_user(store):
    with pytest.raises(NotFoundError):
        await store.delete_user(7)


@pytest.mark.asyncio
async def test_username_lookups_ignore_surrounding_whitespace(store):
    created = await store.create_user("w@x.com", "  walter ", "hash")
    assert created.username == "walter"

    found = await store.find_user_by_username(" walter")
    assert found.id == created.id
    await store.set_user_enabled("walter  ", False)
    assert (await store.find_user_by_username("walter")).enabled is False
    assert (await store.find_user_by_email(" w@x.com ")).id == created.id
