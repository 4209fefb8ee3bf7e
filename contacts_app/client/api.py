"""
HTTP-доступ до платформи контактів: auth-ендпоінти та таблиця `contacts`.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from contacts_app import schemas
from contacts_app.config import get_settings

logger = logging.getLogger(__name__)

MALFORMED_RESPONSE = "Unexpected response from server"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiError(Exception):
    """
    Невдалий виклик платформи.

    :param message: Текст помилки, який можна показати користувачу.
    :param status_code: HTTP статус, або None, якщо відповіді не було.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """
    Перетворює тіло відповіді на pydantic модель.

    :raises ApiError: Якщо дані не відповідають схемі.
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning("Malformed %s in response: %s", model.__name__, exc)
        raise ApiError(MALFORMED_RESPONSE) from exc


def parse_rows(model: Type[ModelT], data: Any) -> List[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning("Expected a list of %s, got %s", model.__name__, type(data).__name__)
        raise ApiError(MALFORMED_RESPONSE)
    return [parse_model(model, row) for row in data]


class PlatformClient:
    """Тонка async-обгортка над httpx, що додає bearer токен сесії."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.access_token: Optional[str] = None
        self._http = httpx.AsyncClient(
            base_url=base_url or get_settings().api_url,
            transport=transport,
            timeout=timeout,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        token: str | None = None,
    ) -> Any:
        """
        Виконує запит до платформи.

        :return: Розібране JSON тіло або None для порожньої відповіді.
        :raises ApiError: Якщо запит не вдався, статус помилковий,
            або тіло успішної відповіді не є JSON.
        """
        headers = {}
        bearer = token or self.access_token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            raise ApiError(_error_message(response), response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s %s returned a non-JSON body", method, path)
            raise ApiError(MALFORMED_RESPONSE, response.status_code) from exc

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for field in ("message", "detail"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


class AuthClient:
    """Auth-ендпоінти. Стану не тримає: сесією володіє SessionProvider."""

    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def get_user(self, token: str) -> schemas.User:
        data = await self.platform.request("GET", "/auth/user", token=token)
        return parse_model(schemas.User, data)

    async def sign_up(self, email: str, password: str) -> schemas.User:
        data = await self.platform.request(
            "POST", "/auth/signup", json={"email": email, "password": password}
        )
        return parse_model(schemas.User, data)

    async def sign_in_with_password(self, email: str, password: str) -> schemas.Session:
        data = await self.platform.request(
            "POST", "/auth/token", json={"email": email, "password": password}
        )
        return parse_model(schemas.Session, data)

    async def sign_out(self, token: str) -> None:
        await self.platform.request("POST", "/auth/logout", token=token)

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self.platform.request(
            "POST", "/auth/recover", json={"email": email, "redirect_to": redirect_to}
        )

    async def verify_recovery(self, token: str) -> schemas.Session:
        data = await self.platform.request(
            "POST", "/auth/verify", json={"token": token, "type": "recovery"}
        )
        return parse_model(schemas.Session, data)

    async def update_user(self, token: str, password: str) -> schemas.User:
        data = await self.platform.request(
            "PUT", "/auth/user", json={"password": password}, token=token
        )
        return parse_model(schemas.User, data)


class ContactsTable:
    """Таблиця `contacts`; платформа обмежує кожен запит рядками власника токена."""

    path = "/rest/contacts"

    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def select_by_user(self, user_id: str) -> List[schemas.Contact]:
        data = await self.platform.request(
            "GET", self.path, params={"user_id": f"eq.{user_id}"}
        )
        return parse_rows(schemas.Contact, data)

    async def insert(self, rows: List[dict]) -> List[schemas.Contact]:
        data = await self.platform.request("POST", self.path, json=rows)
        return parse_rows(schemas.Contact, data)

    async def update(self, contact_id: str, patch: dict) -> List[schemas.Contact]:
        data = await self.platform.request(
            "PATCH", self.path, json=patch, params={"id": f"eq.{contact_id}"}
        )
        return parse_rows(schemas.Contact, data)

    async def delete(self, contact_id: str) -> None:
        await self.platform.request(
            "DELETE", self.path, params={"id": f"eq.{contact_id}"}
        )
