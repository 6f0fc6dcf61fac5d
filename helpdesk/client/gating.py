"""Role gating and derived views. Pure functions of the current state."""
from datetime import datetime
from typing import Optional

from helpdesk.client.state import AppState, StatusTab
from helpdesk.schemas.common import TicketStatus, UserRole
from helpdesk.schemas.ticket import TicketOut
from helpdesk.schemas.user import UserOut

LOGIN_VIEW = "login"

USER_VIEWS = ("user-dashboard", "user-create-ticket", "user-settings")
ADMIN_VIEWS = ("admin-dashboard", "admin-users")


def allowed_views(user: Optional[UserOut]) -> tuple[str, ...]:
    if user is None:
        return (LOGIN_VIEW,)
    if user.role == UserRole.ADMIN:
        return ADMIN_VIEWS
    return USER_VIEWS


def home_view(user: UserOut) -> str:
    return allowed_views(user)[0]


def can_view(user: Optional[UserOut], view: str) -> bool:
    return view in allowed_views(user)


def visible_tickets(state: AppState) -> list[TicketOut]:
    """Tickets the current user may see, after search and tab filters, newest first."""
    user = state.current_user
    if user is None:
        return []
    is_admin = user.role == UserRole.ADMIN
    tickets = list(state.tickets)
    if not is_admin:
        tickets = [t for t in tickets if t.userId == user.id]

    term = state.search_term.strip().lower()
    if term:
        usernames = {u.id: u.username.lower() for u in state.users}
        tickets = [
            t
            for t in tickets
            if term in t.title.lower()
            or term in t.id.lower()
            or (is_admin and term in usernames.get(t.userId, ""))
        ]

    if is_admin and state.active_tab != "ALL":
        tickets = [t for t in tickets if t.status == state.active_tab]

    return sorted(tickets, key=lambda t: datetime.fromisoformat(t.createdAt), reverse=True)


def status_counts(tickets) -> dict[StatusTab, int]:
    counts: dict[StatusTab, int] = {s: 0 for s in TicketStatus}
    for t in tickets:
        counts[t.status] += 1
    counts["ALL"] = sum(counts[s] for s in TicketStatus)
    return counts


def visible_users(state: AppState) -> list[UserOut]:
    term = state.search_term.strip().lower()
    if not term:
        return list(state.users)
    return [
        u
        for u in state.users
        if term in u.username.lower() or term in u.id or term in u.fullName.lower()
    ]
