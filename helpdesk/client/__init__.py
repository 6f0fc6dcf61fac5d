"""Client side of the helpdesk: API wrapper, state store, role gating, chat polling."""
from helpdesk.client.api import HelpdeskClient
from helpdesk.client.chat import ChatPanel
from helpdesk.client.controller import HelpdeskController
from helpdesk.client.errors import (
    ApiError,
    NetworkUnavailableError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailure,
)
from helpdesk.client.state import AppState, Store
from helpdesk.client.typing_indicator import (
    PresenceTypingIndicator,
    SimulatedTypingIndicator,
    TypingIndicator,
)

__all__ = [
    "ApiError",
    "AppState",
    "ChatPanel",
    "HelpdeskClient",
    "HelpdeskController",
    "NetworkUnavailableError",
    "NotFoundError",
    "PresenceTypingIndicator",
    "SimulatedTypingIndicator",
    "Store",
    "TypingIndicator",
    "UnauthorizedError",
    "ValidationFailure",
]
