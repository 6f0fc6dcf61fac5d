"""HTTP client for the helpdesk API. Returns typed wire models."""
import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from helpdesk.client.errors import (
    ApiError,
    NetworkUnavailableError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailure,
)
from helpdesk.config import get_settings
from helpdesk.schemas.chat import MessageOut, TypingOut
from helpdesk.schemas.common import TicketStatus
from helpdesk.schemas.ticket import TicketOut
from helpdesk.schemas.user import LoginOut, ResetPasswordOut, UserOut

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _error_message(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or f"HTTP {r.status_code}"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message") or body.get("error")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return str(detail)
    return f"HTTP {r.status_code}"


def _json(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError as e:
        logger.warning("Non-JSON response from %s (HTTP %s)", r.request.url.path, r.status_code)
        raise ApiError("Unexpected response from the helpdesk server", r.status_code) from e


def _load(r: httpx.Response, model: type[ModelT]) -> ModelT:
    try:
        return model.model_validate(_json(r))
    except ValidationError as e:
        logger.warning("Malformed %s from %s: %s", model.__name__, r.request.url.path, e)
        raise ApiError("Unexpected response from the helpdesk server", r.status_code) from e


def _load_list(r: httpx.Response, model: type[ModelT]) -> list[ModelT]:
    data = _json(r)
    if not isinstance(data, list):
        raise ApiError("Unexpected response from the helpdesk server", r.status_code)
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as e:
        logger.warning("Malformed %s list from %s: %s", model.__name__, r.request.url.path, e)
        raise ApiError("Unexpected response from the helpdesk server", r.status_code) from e


class HelpdeskClient:
    """Thin async wrapper over the JSON endpoints.

    One instance per UI session; holds the bearer token returned by login.
    Pass `transport` to talk to an in-process app (tests) instead of the network.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or get_settings().backend_url).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self.token: Optional[str] = None

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                r = await client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkUnavailableError("Cannot reach the helpdesk server") from e
        if r.status_code < 400:
            return r
        message = _error_message(r)
        if r.status_code == 401:
            raise UnauthorizedError(message, r.status_code)
        if r.status_code == 404:
            raise NotFoundError(message, r.status_code)
        if r.status_code == 422:
            raise ValidationFailure(message, r.status_code)
        raise ApiError(message, r.status_code)

    # --- Auth & users ---
    async def login(self, username: str, password: str) -> UserOut:
        r = await self._request("POST", "/api/login", json={"username": username, "password": password})
        data = _load(r, LoginOut)
        self.token = data.token
        return data.user

    def logout(self) -> None:
        self.token = None

    async def get_users(self) -> list[UserOut]:
        r = await self._request("GET", "/api/users")
        return _load_list(r, UserOut)

    async def create_user(self, **fields: Any) -> UserOut:
        r = await self._request("POST", "/api/users", json=fields)
        return _load(r, UserOut)

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/api/users/{user_id}")

    async def reset_password(self, user_id: str) -> str:
        r = await self._request("POST", f"/api/users/{user_id}/reset-password")
        return _load(r, ResetPasswordOut).temporaryPassword

    async def change_password(self, user_id: str, new_password: str) -> None:
        await self._request("PUT", f"/api/users/{user_id}/password", json={"newPassword": new_password})

    # --- Tickets ---
    async def get_tickets(self) -> list[TicketOut]:
        r = await self._request("GET", "/api/tickets")
        return _load_list(r, TicketOut)

    async def create_ticket(
        self,
        user_id: str,
        title: str,
        description: str,
        department: str,
        screenshot_url: str | None = None,
    ) -> TicketOut:
        body = {
            "userId": user_id,
            "title": title,
            "description": description,
            "department": department,
        }
        if screenshot_url:
            body["screenshotUrl"] = screenshot_url
        r = await self._request("POST", "/api/tickets", json=body)
        return _load(r, TicketOut)

    async def update_ticket_status(self, ticket_id: str, status: TicketStatus) -> None:
        await self._request("PUT", f"/api/tickets/{ticket_id}/status", json={"status": status.value})

    # --- Chat ---
    async def get_messages(self, ticket_id: str) -> list[MessageOut]:
        r = await self._request("GET", f"/api/tickets/{ticket_id}/messages")
        return _load_list(r, MessageOut)

    async def send_message(self, ticket_id: str, sender_id: str, sender_name: str, text: str) -> MessageOut:
        r = await self._request(
            "POST",
            f"/api/tickets/{ticket_id}/messages",
            json={"senderId": sender_id, "senderName": sender_name, "text": text},
        )
        return _load(r, MessageOut)

    async def mark_typing(self, ticket_id: str, user_id: str, user_name: str) -> None:
        await self._request("PUT", f"/api/tickets/{ticket_id}/typing", json={"userId": user_id, "userName": user_name})

    async def get_typing(self, ticket_id: str, exclude: str | None = None) -> list[TypingOut]:
        params = {"exclude": exclude} if exclude else None
        r = await self._request("GET", f"/api/tickets/{ticket_id}/typing", params=params)
        return _load_list(r, TypingOut)
