"""
The dashboard: the user's contacts held in memory, the filtered and sorted
view over them, and the add/edit modal.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Iterable, List, Optional, Union

from contacts_app import schemas
from contacts_app.client import messages, navigation
from contacts_app.client.api import ApiError, ContactsTable
from contacts_app.client.guard import InFlight
from contacts_app.client.navigation import Navigator
from contacts_app.client.notifications import Toaster
from contacts_app.client.session import SessionProvider

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "created_at")
ASC = "asc"
DESC = "desc"

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class SortConfig:
    key: str = "name"
    direction: str = ASC

    def __post_init__(self):
        if self.key not in SORT_KEYS:
            raise ValueError(f"Unsupported sort key: {self.key}")
        if self.direction not in (ASC, DESC):
            raise ValueError(f"Unsupported sort direction: {self.direction}")

    def toggled(self, key: str) -> "SortConfig":
        """Повторний клік по тому ж ключу при зростанні змінює порядок на спадний, інакше сортує за зростанням."""
        if key == self.key and self.direction == ASC:
            return SortConfig(key, DESC)
        return SortConfig(key, ASC)


@dataclass
class ContactDraft:
    name: str = ""
    email: str = ""
    phone: str = ""

    @classmethod
    def from_contact(cls, contact: schemas.Contact) -> "ContactDraft":
        return cls(name=contact.name, email=contact.email, phone=contact.phone or "")

    @property
    def is_complete(self) -> bool:
        return bool(self.name.strip()) and bool(self.email.strip())

    def as_row(self) -> dict:
        return {"name": self.name, "email": self.email, "phone": self.phone or None}


def matches(contact: schemas.Contact, term: str) -> bool:
    needle = term.lower()
    if needle in contact.name.lower() or needle in contact.email.lower():
        return True
    return bool(contact.phone) and needle in contact.phone.lower()


def filter_contacts(contacts: Iterable[schemas.Contact], term: str) -> List[schemas.Contact]:
    return [contact for contact in contacts if matches(contact, term)]


def sort_contacts(contacts: Iterable[schemas.Contact], config: SortConfig) -> List[schemas.Contact]:
    # sorted() стабільний в обох напрямках: рівні ключі зберігають порядок.
    return sorted(
        contacts,
        key=lambda contact: getattr(contact, config.key),
        reverse=config.direction == DESC,
    )


def visible_contacts(
    contacts: Iterable[schemas.Contact], term: str, config: SortConfig
) -> List[schemas.Contact]:
    return sort_contacts(filter_contacts(contacts, term), config)


class ContactListStore:
    """Snapshot of the signed-in user's contacts as last returned by the platform."""

    def __init__(self, contacts: Optional[Iterable[schemas.Contact]] = None):
        self.contacts: List[schemas.Contact] = list(contacts or [])

    def __len__(self) -> int:
        return len(self.contacts)

    def replace_all(self, rows: Iterable[schemas.Contact]) -> None:
        self.contacts = list(rows)

    def append(self, rows: Iterable[schemas.Contact]) -> None:
        self.contacts = [*self.contacts, *rows]

    def replace(self, row: schemas.Contact) -> None:
        self.contacts = [row if contact.id == row.id else contact for contact in self.contacts]

    def remove(self, contact_id: str) -> None:
        self.contacts = [contact for contact in self.contacts if contact.id != contact_id]


class ContactListView:
    """`/dashboard`. Обробники виконуються в event loop і не кидають винятків."""

    def __init__(
        self,
        session: SessionProvider,
        table: ContactsTable,
        navigator: Navigator,
        toaster: Toaster,
        confirm: Confirm,
    ):
        self.session = session
        self.table = table
        self.navigator = navigator
        self.toaster = toaster
        self.confirm = confirm

        self.store = ContactListStore()
        self.search_term = ""
        self.sort_config = SortConfig()
        self.editing_contact: Optional[schemas.Contact] = None
        self.modal_open = False
        self.draft = ContactDraft()

        self._saving = InFlight()
        self._deleting = InFlight()

    @property
    def contacts(self) -> List[schemas.Contact]:
        return self.store.contacts

    @property
    def visible(self) -> List[schemas.Contact]:
        return visible_contacts(self.store.contacts, self.search_term, self.sort_config)

    @property
    def save_disabled(self) -> bool:
        return self._saving.active

    @property
    def delete_disabled(self) -> bool:
        return self._deleting.active

    async def mount(self) -> None:
        """Завантажує контакти або переходить на сторінку логіну, якщо сесії немає."""
        try:
            user = await self.session.get_user()
            if user is None:
                self.navigator.push(navigation.LOGIN)
                return
            rows = await self.table.select_by_user(user.id)
        except ApiError as exc:
            logger.error("Error fetching contacts: %s", exc.message)
            self.toaster.error(messages.CONTACTS_LOAD_ERROR)
            return
        self.store.replace_all(rows)

    def set_search(self, term: str) -> None:
        self.search_term = term

    def toggle_sort(self, key: str) -> None:
        self.sort_config = self.sort_config.toggled(key)

    def open_new(self) -> None:
        self.editing_contact = None
        self.draft = ContactDraft()
        self.modal_open = True

    def edit(self, contact: schemas.Contact) -> None:
        self.editing_contact = contact
        self.draft = ContactDraft.from_contact(contact)
        self.modal_open = True

    def update_draft(self, **fields) -> None:
        self.draft = replace(self.draft, **fields)

    def close_modal(self) -> None:
        self.modal_open = False
        self.editing_contact = None
        self.draft = ContactDraft()

    async def submit(self) -> bool:
        """
        Створює або оновлює контакт з чернетки.

        :return: True, якщо модальне вікно закрито.
        """
        if not self.draft.is_complete:
            self.toaster.error(messages.REQUIRED_FIELDS)
            return False

        with self._saving.claim() as acquired:
            if not acquired:
                return False
            try:
                if self.editing_contact is not None:
                    await self._update(self.editing_contact)
                else:
                    await self._create()
            except ApiError as exc:
                logger.error("Error saving contact: %s", exc.message)
                self.toaster.error(exc.message or messages.CONTACT_SAVE_ERROR)
                return False

        self.close_modal()
        return True

    async def _create(self) -> None:
        session = self.session.current_session()
        if session is None:
            raise ApiError("Auth session missing!", 401)
        row = {**self.draft.as_row(), "user_id": session.user.id}
        inserted = await self.table.insert([row])
        self.store.append(inserted)
        self.toaster.success(messages.CONTACT_CREATED)

    async def _update(self, contact: schemas.Contact) -> None:
        updated = await self.table.update(contact.id, self.draft.as_row())
        if not updated:
            raise ApiError(messages.CONTACT_SAVE_ERROR, 404)
        self.store.replace(updated[0])
        self.toaster.success(messages.CONTACT_UPDATED)

    async def delete(self, contact_id: str) -> bool:
        """
        Видаляє контакт після підтвердження.

        :param contact_id: Ідентифікатор контакту.
        :return: True, якщо рядок видалено.
        """
        answer = self.confirm(messages.CONFIRM_DELETE)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            return False

        with self._deleting.claim() as acquired:
            if not acquired:
                return False
            try:
                await self.table.delete(contact_id)
            except ApiError as exc:
                logger.error("Error deleting contact: %s", exc.message)
                self.toaster.error(messages.CONTACT_DELETE_ERROR)
                return False
        self.store.remove(contact_id)
        self.toaster.success(messages.CONTACT_DELETED)
        return True

    def render(self) -> dict:
        rows = self.visible
        empty_text = None
        if not rows:
            empty_text = messages.NO_MATCHES if self.search_term else messages.NO_CONTACTS
        return {
            "title": messages.APP_TITLE,
            "contacts": rows,
            "empty_text": empty_text,
            "sort": [
                {
                    "key": key,
                    "label": messages.SORT_LABELS[key],
                    "active": key == self.sort_config.key,
                    "direction": self.sort_config.direction if key == self.sort_config.key else None,
                }
                for key in SORT_KEYS
            ],
            "modal": {
                "title": messages.EDIT_CONTACT if self.editing_contact else messages.NEW_CONTACT,
                "draft": self.draft,
                "save_disabled": self.save_disabled,
            }
            if self.modal_open
            else None,
        }
