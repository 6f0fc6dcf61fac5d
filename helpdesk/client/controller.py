"""Screen handlers: each user action calls the API and dispatches the outcome to the store."""
import asyncio
import logging
import sys
from typing import Callable, Optional

from helpdesk.client import gating
from helpdesk.client.api import HelpdeskClient
from helpdesk.client.chat import ChatPanel
from helpdesk.client.errors import ApiError, NetworkUnavailableError, UnauthorizedError, ValidationFailure
from helpdesk.client.state import (
    ChatClosed,
    ChatOpened,
    DataLoaded,
    LoggedIn,
    LoggedOut,
    LoginFailed,
    Navigated,
    SearchChanged,
    StatusTab,
    Store,
    TabChanged,
    Toast,
    ToastDismissed,
    ToastKind,
    ToastShown,
)
from helpdesk.client.typing_indicator import TypingIndicator
from helpdesk.config import get_settings
from helpdesk.schemas.chat import MessageOut
from helpdesk.schemas.common import TicketStatus, UserRole
from helpdesk.schemas.user import UserOut

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def terminal_bell() -> None:
    sys.stdout.write("\a")
    sys.stdout.flush()


def validate_new_password(new_password: str, confirm_password: str) -> None:
    """Settings form check, done before any request is sent."""
    if new_password != confirm_password:
        raise ValidationFailure("Passwords do not match")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailure(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class HelpdeskController:
    def __init__(
        self,
        client: HelpdeskClient,
        store: Optional[Store] = None,
        *,
        play_sound: Callable[[], None] = terminal_bell,
        typing_factory: Optional[Callable[[], TypingIndicator]] = None,
        toast_seconds: Optional[float] = None,
    ) -> None:
        self.client = client
        self.store = store or Store()
        self.chat: Optional[ChatPanel] = None
        self._play_sound = play_sound
        self._typing_factory = typing_factory
        self._toast_seconds = toast_seconds if toast_seconds is not None else get_settings().toast_seconds

    @property
    def state(self):
        return self.store.state

    @property
    def user(self) -> Optional[UserOut]:
        return self.store.state.current_user

    def show_toast(self, message: str, kind: ToastKind = "success") -> Toast:
        """Show a toast; it dismisses itself after toast_seconds when an event loop is running."""
        toast = Toast(message=message, kind=kind)
        self.store.dispatch(ToastShown(toast))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return toast
        # A newer toast is left alone: ToastDismissed only clears a matching id
        loop.call_later(self._toast_seconds, self.dismiss_toast, toast.id)
        return toast

    def dismiss_toast(self, toast_id: int) -> None:
        self.store.dispatch(ToastDismissed(toast_id))

    # --- Session ---
    async def login(self, username: str, password: str) -> bool:
        try:
            user = await self.client.login(username, password)
        except UnauthorizedError:
            self.store.dispatch(LoginFailed("Invalid username or password"))
            return False
        except ApiError as e:
            logger.warning("Login failed: %s", e)
            self.store.dispatch(LoginFailed("Something went wrong. Is the server running?"))
            return False
        self.store.dispatch(LoggedIn(user=user, home_view=gating.home_view(user)))
        await self.refresh()
        return True

    async def logout(self) -> None:
        await self.close_chat()
        self.client.logout()
        self.store.dispatch(LoggedOut())

    def navigate(self, view: str) -> bool:
        """Go to view if the current role may see it."""
        if not gating.can_view(self.user, view):
            logger.info("Navigation to %s refused for role %s", view, self.user.role if self.user else None)
            return False
        self.store.dispatch(Navigated(view))
        return True

    async def refresh(self) -> None:
        try:
            users = await self.client.get_users()
            tickets = await self.client.get_tickets()
        except ApiError as e:
            logger.warning("Refresh failed: %s", e)
            self.show_toast(self._failure_message(e, "Failed to load data"), "error")
            return
        self.store.dispatch(DataLoaded(users=tuple(users), tickets=tuple(tickets)))

    def search(self, term: str) -> None:
        self.store.dispatch(SearchChanged(term))

    def select_tab(self, tab: StatusTab) -> None:
        self.store.dispatch(TabChanged(tab))

    # --- Tickets ---
    async def submit_ticket(
        self,
        title: str,
        description: str,
        department: str,
        screenshot_url: Optional[str] = None,
    ) -> bool:
        if not self.user:
            return False
        try:
            await self.client.create_ticket(self.user.id, title, description, department, screenshot_url)
        except ApiError as e:
            logger.warning("Ticket creation failed: %s", e)
            self.show_toast(self._failure_message(e, "Failed to create ticket"), "error")
            return False
        await self.refresh()
        self.navigate("user-dashboard")
        self.show_toast("Ticket created successfully", "success")
        return True

    async def change_status(self, ticket_id: str, status: TicketStatus) -> bool:
        if not self.user or self.user.role != UserRole.ADMIN:
            return False
        try:
            await self.client.update_ticket_status(ticket_id, status)
        except ApiError as e:
            logger.warning("Status update failed: %s", e)
            self.show_toast(self._failure_message(e, "Failed to update ticket"), "error")
            return False
        await self.refresh()
        self.show_toast(f"Ticket status updated to {status.value}", "info")
        return True

    # --- Settings ---
    async def update_password(self, new_password: str, confirm_password: str) -> bool:
        if not self.user:
            return False
        try:
            validate_new_password(new_password, confirm_password)
            await self.client.change_password(self.user.id, new_password)
        except ApiError as e:
            self.show_toast(self._failure_message(e, "Failed to update password"), "error")
            return False
        self.show_toast("Password updated successfully", "success")
        return True

    # --- User management ---
    async def create_user(
        self,
        username: str,
        full_name: str,
        email: str,
        department: str,
        role: UserRole = UserRole.USER,
    ) -> Optional[UserOut]:
        try:
            created = await self.client.create_user(
                username=username,
                fullName=full_name,
                email=email,
                department=department,
                role=role.value,
            )
        except ApiError as e:
            logger.warning("User creation failed: %s", e)
            self.show_toast("Failed to create user", "error")
            return None
        await self.refresh()
        self.show_toast(f"User created. ID: {created.id}", "success")
        return created

    async def reset_password(self, user_id: str) -> Optional[str]:
        """Returns the temporary password for the admin to pass on; it is not kept anywhere."""
        try:
            temporary = await self.client.reset_password(user_id)
        except ApiError as e:
            self.show_toast(self._failure_message(e, "Failed to reset password"), "error")
            return None
        await self.refresh()
        return temporary

    async def delete_user(self, user_id: str) -> bool:
        try:
            await self.client.delete_user(user_id)
        except ApiError as e:
            self.show_toast(self._failure_message(e, "Failed to delete user"), "error")
            return False
        await self.refresh()
        self.show_toast("User deleted", "info")
        return True

    # --- Chat ---
    async def open_chat(self, ticket_id: str) -> Optional[ChatPanel]:
        if not self.user:
            return None
        await self.close_chat()
        typing = self._typing_factory() if self._typing_factory else None
        self.chat = ChatPanel(
            self.client,
            ticket_id,
            self.user,
            on_new_message=self._on_new_message,
            typing=typing,
        )
        self.store.dispatch(ChatOpened(ticket_id))
        await self.chat.open()
        return self.chat

    async def send_message(self, text: str) -> Optional[MessageOut]:
        if self.chat is None:
            return None
        try:
            return await self.chat.send(text)
        except ApiError as e:
            logger.warning("Sending chat message failed: %s", e)
            self.show_toast(self._failure_message(e, "Failed to send message"), "error")
            return None

    async def close_chat(self) -> None:
        if self.chat is None:
            return
        chat, self.chat = self.chat, None
        await chat.close()
        self.store.dispatch(ChatClosed())

    def _on_new_message(self, message: MessageOut) -> None:
        self._play_sound()
        self.show_toast(f"New message from {message.senderName}", "info")

    @staticmethod
    def _failure_message(e: ApiError, fallback: str) -> str:
        if isinstance(e, NetworkUnavailableError):
            return "Cannot reach the server"
        if isinstance(e, ValidationFailure) and e.status_code is None:
            # Raised locally by a form check; its text is meant for the user
            return e.message
        return fallback
