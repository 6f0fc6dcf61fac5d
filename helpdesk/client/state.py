"""Client application state: one immutable state object, changed only via dispatch().

Every UI mutation is an action handled by `reduce`; the `Store` keeps the
current state and notifies subscribers (renderers) after each dispatch.
"""
import itertools
from dataclasses import dataclass, field, replace
from typing import Callable, Literal, Optional, Union

from helpdesk.schemas.common import TicketStatus
from helpdesk.schemas.ticket import TicketOut
from helpdesk.schemas.user import UserOut

ToastKind = Literal["success", "info", "warning", "error"]
StatusTab = Union[TicketStatus, Literal["ALL"]]

_toast_ids = itertools.count(1)


@dataclass(frozen=True)
class Toast:
    message: str
    kind: ToastKind = "success"
    id: int = field(default_factory=lambda: next(_toast_ids))


@dataclass(frozen=True)
class AppState:
    current_user: Optional[UserOut] = None
    current_view: str = "login"
    users: tuple[UserOut, ...] = ()
    tickets: tuple[TicketOut, ...] = ()
    search_term: str = ""
    active_tab: StatusTab = TicketStatus.PENDING
    active_chat_ticket_id: Optional[str] = None
    login_error: str = ""
    toast: Optional[Toast] = None


# --- Actions ---
@dataclass(frozen=True)
class LoggedIn:
    user: UserOut
    home_view: str


@dataclass(frozen=True)
class LoginFailed:
    message: str


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class Navigated:
    view: str


@dataclass(frozen=True)
class DataLoaded:
    users: tuple[UserOut, ...]
    tickets: tuple[TicketOut, ...]


@dataclass(frozen=True)
class SearchChanged:
    term: str


@dataclass(frozen=True)
class TabChanged:
    tab: StatusTab


@dataclass(frozen=True)
class ChatOpened:
    ticket_id: str


@dataclass(frozen=True)
class ChatClosed:
    pass


@dataclass(frozen=True)
class ToastShown:
    toast: Toast


@dataclass(frozen=True)
class ToastDismissed:
    toast_id: int


Action = Union[
    LoggedIn,
    LoginFailed,
    LoggedOut,
    Navigated,
    DataLoaded,
    SearchChanged,
    TabChanged,
    ChatOpened,
    ChatClosed,
    ToastShown,
    ToastDismissed,
]


def reduce(state: AppState, action: Action) -> AppState:
    if isinstance(action, LoggedIn):
        return replace(state, current_user=action.user, current_view=action.home_view, login_error="")
    if isinstance(action, LoginFailed):
        return replace(state, login_error=action.message)
    if isinstance(action, LoggedOut):
        # Everything session-scoped goes; a pending toast may still be shown
        return AppState(toast=state.toast)
    if isinstance(action, Navigated):
        return replace(state, current_view=action.view)
    if isinstance(action, DataLoaded):
        return replace(state, users=action.users, tickets=action.tickets)
    if isinstance(action, SearchChanged):
        return replace(state, search_term=action.term)
    if isinstance(action, TabChanged):
        return replace(state, active_tab=action.tab)
    if isinstance(action, ChatOpened):
        return replace(state, active_chat_ticket_id=action.ticket_id)
    if isinstance(action, ChatClosed):
        return replace(state, active_chat_ticket_id=None)
    if isinstance(action, ToastShown):
        return replace(state, toast=action.toast)
    if isinstance(action, ToastDismissed):
        if state.toast and state.toast.id == action.toast_id:
            return replace(state, toast=None)
        return state
    raise TypeError(f"Unknown action: {action!r}")


Listener = Callable[[AppState], None]


class Store:
    """Holds the current AppState; the single update channel for the UI."""

    def __init__(self, state: AppState | None = None):
        self._state = state or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
