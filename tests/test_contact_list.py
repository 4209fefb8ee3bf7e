import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from contacts_app import schemas
from contacts_app.client import messages
from contacts_app.client.api import ApiError
from contacts_app.client.contacts import (
    ContactDraft,
    ContactListStore,
    ContactListView,
    SortConfig,
    filter_contacts,
    matches,
    sort_contacts,
    visible_contacts,
)
from contacts_app.client.navigation import Navigator
from contacts_app.client.notifications import ERROR, SUCCESS, Toaster

T0 = datetime(2024, 1, 1, 12, 0, 0)
USER_ID = "user-1"


def make_contact(id, name, email=None, phone=None, minutes=0):
    return schemas.Contact(
        id=id,
        user_id=USER_ID,
        name=name,
        email=email or f"{name.lower()}@x.com",
        phone=phone,
        created_at=T0 + timedelta(minutes=minutes),
    )


ANA = make_contact("1", "Ana", "a@x.com", minutes=2)
BETO = make_contact("2", "Beto", "b@x.com", phone="555-0101", minutes=1)
CARLA = make_contact("3", "Carla", "carla@mail.org", minutes=3)


def test_search_is_case_insensitive_substring():
    assert filter_contacts([ANA, BETO], "an") == [ANA]
    assert filter_contacts([ANA, BETO], "AN") == [ANA]


def test_search_matches_email_and_phone():
    assert filter_contacts([ANA, BETO, CARLA], "mail.org") == [CARLA]
    assert filter_contacts([ANA, BETO, CARLA], "0101") == [BETO]
    assert filter_contacts([ANA, BETO, CARLA], "") == [ANA, BETO, CARLA]


@pytest.mark.parametrize("term", ["a", "x.com", "5", "zzz", "B", ""])
def test_search_partitions_contacts(term):
    contacts = [ANA, BETO, CARLA]
    shown = filter_contacts(contacts, term)
    needle = term.lower()

    for contact in shown:
        assert needle in contact.name.lower() or needle in contact.email.lower() or (
            contact.phone and needle in contact.phone.lower()
        )
    for contact in contacts:
        if contact not in shown:
            assert not matches(contact, term)


def test_sort_by_name_and_toggle():
    config = SortConfig("name", "asc")
    assert sort_contacts([BETO, ANA], config) == [ANA, BETO]

    config = config.toggled("name")
    assert config == SortConfig("name", "desc")
    assert sort_contacts([BETO, ANA], config) == [BETO, ANA]

    assert config.toggled("name") == SortConfig("name", "asc")
    assert config.toggled("created_at") == SortConfig("created_at", "asc")


def test_sort_by_created_at():
    assert sort_contacts([ANA, BETO, CARLA], SortConfig("created_at", "asc")) == [BETO, ANA, CARLA]
    assert sort_contacts([ANA, BETO, CARLA], SortConfig("created_at", "desc")) == [CARLA, ANA, BETO]


@pytest.mark.parametrize("direction", ["asc", "desc"])
@pytest.mark.parametrize("key", ["name", "created_at"])
def test_sort_is_stable_and_idempotent(key, direction):
    twin_a = make_contact("10", "Same", "one@x.com", minutes=5)
    twin_b = make_contact("11", "Same", "two@x.com", minutes=5)
    contacts = [twin_a, ANA, twin_b, BETO]
    config = SortConfig(key, direction)

    once = sort_contacts(contacts, config)
    assert sort_contacts(once, config) == once
    assert once.index(twin_a) < once.index(twin_b)


def test_sort_config_rejects_unknown_key():
    with pytest.raises(ValueError):
        SortConfig("email", "asc")


def test_visible_contacts_filters_then_sorts():
    assert visible_contacts([CARLA, BETO, ANA], "a", SortConfig("name", "desc")) == [CARLA, ANA]
    assert visible_contacts([CARLA, BETO, ANA], "ar", SortConfig()) == [CARLA]


def test_store_mutations():
    store = ContactListStore([ANA, BETO])

    store.append([CARLA])
    assert [c.id for c in store.contacts] == ["1", "2", "3"]

    renamed = ANA.model_copy(update={"name": "Anita"})
    store.replace(renamed)
    assert len(store) == 3
    assert store.contacts[0] == renamed

    store.remove("2")
    assert [c.id for c in store.contacts] == ["1", "3"]


def test_draft_from_contact_blanks_missing_phone():
    draft = ContactDraft.from_contact(ANA)
    assert draft == ContactDraft("Ana", "a@x.com", "")
    assert draft.as_row() == {"name": "Ana", "email": "a@x.com", "phone": None}
    assert not ContactDraft(name="  ", email="a@x.com").is_complete


def make_session(user_id=USER_ID):
    session = MagicMock()
    user = schemas.User(id=user_id, email="me@x.com", created_at=T0)
    session.get_user = AsyncMock(return_value=user)
    session.current_session.return_value = schemas.Session(
        access_token="token", expires_in=3600, expires_at=T0, user=user
    )
    return session


def make_view(contacts=(), confirm=True, session=None):
    table = MagicMock()
    table.select_by_user = AsyncMock(return_value=list(contacts))
    table.insert = AsyncMock()
    table.update = AsyncMock()
    table.delete = AsyncMock(return_value=None)
    view = ContactListView(
        session or make_session(), table, Navigator(), Toaster(), confirm=lambda message: confirm
    )
    asyncio.run(view.mount())
    return view, table


def test_mount_loads_contacts_for_session_user():
    view, table = make_view([ANA, BETO])

    table.select_by_user.assert_awaited_once_with(USER_ID)
    assert view.contacts == [ANA, BETO]
    assert view.navigator.current is None


def test_mount_without_session_redirects_to_login():
    session = make_session()
    session.get_user = AsyncMock(return_value=None)

    view, table = make_view(session=session)

    assert view.navigator.current == "/login"
    table.select_by_user.assert_not_called()


def test_mount_failure_keeps_store_and_toasts():
    session = make_session()
    view = ContactListView(session, MagicMock(), Navigator(), Toaster(), confirm=lambda m: True)
    view.table.select_by_user = AsyncMock(side_effect=ApiError("boom", 500))

    asyncio.run(view.mount())

    assert view.contacts == []
    assert view.toaster.last.kind == ERROR
    assert view.toaster.last.message == messages.CONTACTS_LOAD_ERROR


def test_create_appends_server_row_and_closes_modal():
    view, table = make_view([ANA])
    created = make_contact("99", "Dora", "d@x.com", minutes=9)
    table.insert.return_value = [created]

    view.open_new()
    view.update_draft(name="Dora", email="d@x.com")
    assert asyncio.run(view.submit()) is True

    table.insert.assert_awaited_once_with([{"name": "Dora", "email": "d@x.com", "phone": None, "user_id": USER_ID}])
    assert [c.id for c in view.contacts].count("99") == 1
    assert view.contacts[-1] == created
    assert view.modal_open is False
    assert view.draft == ContactDraft()
    assert view.toaster.last.kind == SUCCESS
    assert view.toaster.last.message == messages.CONTACT_CREATED


def test_create_failure_keeps_modal_and_draft():
    view, table = make_view([ANA])
    table.insert.side_effect = ApiError("duplicate key", 409)

    view.open_new()
    view.update_draft(name="Dora", email="d@x.com")
    assert asyncio.run(view.submit()) is False

    assert view.contacts == [ANA]
    assert view.modal_open is True
    assert view.draft.name == "Dora"
    assert view.toaster.last.kind == ERROR
    assert view.toaster.last.message == "duplicate key"
    assert view.save_disabled is False


def test_submit_with_missing_required_field_makes_no_call():
    view, table = make_view()

    view.open_new()
    view.update_draft(name="Dora")
    assert asyncio.run(view.submit()) is False

    table.insert.assert_not_called()
    assert view.modal_open is True
    assert view.toaster.last.message == messages.REQUIRED_FIELDS


def test_edit_then_update_replaces_by_id():
    view, table = make_view([ANA, BETO])
    server_row = BETO.model_copy(update={"name": "Roberto"})
    table.update.return_value = [server_row]

    view.edit(BETO)
    assert view.modal_open is True
    assert view.editing_contact == BETO
    assert view.draft == ContactDraft("Beto", "b@x.com", "555-0101")
    assert view.contacts == [ANA, BETO]

    view.update_draft(name="Roberto")
    assert asyncio.run(view.submit()) is True

    table.update.assert_awaited_once_with("2", {"name": "Roberto", "email": "b@x.com", "phone": "555-0101"})
    assert len(view.contacts) == 2
    assert view.contacts[1] == server_row
    assert view.editing_contact is None
    assert view.toaster.last.message == messages.CONTACT_UPDATED


def test_update_matching_nothing_is_an_error():
    view, table = make_view([ANA])
    table.update.return_value = []

    view.edit(ANA)
    assert asyncio.run(view.submit()) is False

    assert view.contacts == [ANA]
    assert view.modal_open is True
    assert view.toaster.last.kind == ERROR


def test_delete_removes_exactly_one():
    view, table = make_view([ANA, BETO, CARLA])

    assert asyncio.run(view.delete("2")) is True

    table.delete.assert_awaited_once_with("2")
    assert len(view.contacts) == 2
    assert all(c.id != "2" for c in view.contacts)
    assert view.toaster.last.message == messages.CONTACT_DELETED


def test_delete_declined_makes_no_call():
    view, table = make_view([ANA, BETO], confirm=False)

    assert asyncio.run(view.delete("2")) is False

    table.delete.assert_not_called()
    assert view.contacts == [ANA, BETO]


def test_delete_accepts_async_confirmation():
    view, table = make_view([ANA])

    async def confirm(message):
        assert message == messages.CONFIRM_DELETE
        return True

    view.confirm = confirm
    assert asyncio.run(view.delete("1")) is True
    assert view.contacts == []


def test_delete_failure_keeps_row():
    view, table = make_view([ANA])
    table.delete.side_effect = ApiError("network down")

    assert asyncio.run(view.delete("1")) is False

    assert view.contacts == [ANA]
    assert view.toaster.last.message == messages.CONTACT_DELETE_ERROR


def test_repeated_submit_while_in_flight_is_dropped():
    view, table = make_view()
    release = None

    async def slow_insert(rows):
        await release.wait()
        return [make_contact("50", "Eva", minutes=1)]

    table.insert.side_effect = slow_insert

    async def scenario():
        nonlocal release
        release = asyncio.Event()
        view.open_new()
        view.update_draft(name="Eva", email="e@x.com")
        first = asyncio.create_task(view.submit())
        await asyncio.sleep(0)
        assert view.save_disabled is True
        second = await view.submit()
        release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (True, False)
    assert table.insert.await_count == 1
    assert len(view.contacts) == 1
    assert view.save_disabled is False


def test_close_modal_clears_everything():
    view, _ = make_view([ANA])
    view.edit(ANA)

    view.close_modal()

    assert view.modal_open is False
    assert view.editing_contact is None
    assert view.draft == ContactDraft()


def test_render_reports_empty_states_and_sort():
    view, _ = make_view([ANA, BETO])
    view.set_search("zzz")
    rendered = view.render()
    assert rendered["contacts"] == []
    assert rendered["empty_text"] == messages.NO_MATCHES
    assert rendered["modal"] is None

    view.set_search("")
    view.toggle_sort("name")
    rendered = view.render()
    assert [c.name for c in rendered["contacts"]] == ["Beto", "Ana"]
    assert rendered["sort"][0] == {"key": "name", "label": "Nombre", "active": True, "direction": "desc"}
    assert rendered["sort"][1]["active"] is False

    empty, _ = make_view()
    assert empty.render()["empty_text"] == messages.NO_CONTACTS
