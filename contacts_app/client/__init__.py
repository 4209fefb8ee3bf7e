from contacts_app.client.api import ApiError, AuthClient, ContactsTable, PlatformClient
from contacts_app.client.app import ClientApp
from contacts_app.client.contacts import ContactListStore, ContactListView, SortConfig
from contacts_app.client.session import AuthEvent, SessionProvider

__all__ = [
    "ApiError",
    "AuthClient",
    "AuthEvent",
    "ClientApp",
    "ContactListStore",
    "ContactListView",
    "ContactsTable",
    "PlatformClient",
    "SessionProvider",
    "SortConfig",
]
