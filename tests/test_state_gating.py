import pytest

from helpdesk.client import gating
from helpdesk.client.controller import validate_new_password
from helpdesk.client.errors import ValidationFailure
from helpdesk.client.state import (
    AppState,
    ChatOpened,
    DataLoaded,
    LoggedIn,
    LoggedOut,
    LoginFailed,
    Navigated,
    SearchChanged,
    Store,
    TabChanged,
    Toast,
    ToastDismissed,
    ToastShown,
    reduce,
)
from helpdesk.schemas.common import TicketStatus, UserRole
from helpdesk.schemas.ticket import TicketOut
from helpdesk.schemas.user import UserOut

ADMIN = UserOut(id="100001", username="admin", fullName="System Administrator", department="IT Support", email="admin@telecel.com", role=UserRole.ADMIN)
JOHN = UserOut(id="100002", username="john.doe", fullName="John Doe", department="Sales", email="john.doe@telecel.com", role=UserRole.USER)
JANE = UserOut(id="100003", username="jane.smith", fullName="Jane Smith", department="HR", email="jane.smith@telecel.com", role=UserRole.USER)


def ticket(id, user, title, status=TicketStatus.PENDING, created="2026-10-01T09:00:00"):
    return TicketOut(
        id=id,
        userId=user.id,
        title=title,
        description="",
        department=user.department,
        status=status,
        createdAt=created,
        updatedAt=created,
    )


TICKETS = (
    ticket("t-1001", JOHN, "Cannot access CRM", created="2026-10-02T09:00:00"),
    ticket("t-1002", JANE, "Printer Jam on 2nd Floor", TicketStatus.IN_PROGRESS, created="2026-10-01T09:00:00"),
    ticket("t-1003", JOHN, "VPN drops hourly", TicketStatus.RESOLVED, created="2026-10-03T09:00:00.250000"),
)


def state_for(user, **kwargs):
    return AppState(current_user=user, users=(ADMIN, JOHN, JANE), tickets=TICKETS, **kwargs)


def test_allowed_views_by_role():
    assert gating.allowed_views(None) == ("login",)
    assert gating.home_view(ADMIN) == "admin-dashboard"
    assert gating.home_view(JOHN) == "user-dashboard"
    assert gating.can_view(ADMIN, "admin-users")
    assert not gating.can_view(ADMIN, "user-settings")
    assert gating.can_view(JOHN, "user-create-ticket")
    assert not gating.can_view(JOHN, "admin-users")
    assert not gating.can_view(None, "user-dashboard")


def test_user_sees_only_own_tickets_newest_first():
    visible = gating.visible_tickets(state_for(JOHN))
    assert [t.id for t in visible] == ["t-1003", "t-1001"]


def test_admin_tab_filter():
    assert [t.id for t in gating.visible_tickets(state_for(ADMIN))] == ["t-1001"]
    all_tab = state_for(ADMIN, active_tab="ALL")
    assert [t.id for t in gating.visible_tickets(all_tab)] == ["t-1003", "t-1001", "t-1002"]
    in_progress = state_for(ADMIN, active_tab=TicketStatus.IN_PROGRESS)
    assert [t.id for t in gating.visible_tickets(in_progress)] == ["t-1002"]


def test_search():
    assert [t.id for t in gating.visible_tickets(state_for(JOHN, search_term="crm"))] == ["t-1001"]
    assert [t.id for t in gating.visible_tickets(state_for(JOHN, search_term="1003"))] == ["t-1003"]
    # Owner username only matches for admins
    assert gating.visible_tickets(state_for(JOHN, search_term="john")) == []
    by_owner = state_for(ADMIN, search_term="jane", active_tab="ALL")
    assert [t.id for t in gating.visible_tickets(by_owner)] == ["t-1002"]


def test_no_user_sees_nothing():
    assert gating.visible_tickets(AppState(tickets=TICKETS)) == []


def test_status_counts():
    counts = gating.status_counts(TICKETS)
    assert counts[TicketStatus.PENDING] == 1
    assert counts[TicketStatus.IN_PROGRESS] == 1
    assert counts[TicketStatus.RESOLVED] == 1
    assert counts["ALL"] == 3


def test_visible_users():
    assert [u.id for u in gating.visible_users(state_for(ADMIN, search_term="smith"))] == [JANE.id]
    assert [u.id for u in gating.visible_users(state_for(ADMIN, search_term="100002"))] == [JOHN.id]
    assert len(gating.visible_users(state_for(ADMIN))) == 3


def test_reducer_session_flow():
    state = reduce(AppState(), LoginFailed("Invalid username or password"))
    assert state.login_error == "Invalid username or password"

    state = reduce(state, LoggedIn(user=JOHN, home_view="user-dashboard"))
    assert state.current_user == JOHN
    assert state.current_view == "user-dashboard"
    assert state.login_error == ""

    state = reduce(state, DataLoaded(users=(JOHN,), tickets=TICKETS))
    state = reduce(state, SearchChanged("crm"))
    state = reduce(state, TabChanged("ALL"))
    state = reduce(state, ChatOpened("t-1001"))
    state = reduce(state, Navigated("user-settings"))
    assert state.current_view == "user-settings"
    assert state.active_chat_ticket_id == "t-1001"

    toast = Toast("bye", "info")
    state = reduce(state, ToastShown(toast))
    state = reduce(state, LoggedOut())
    assert state == AppState(toast=toast)


def test_toast_dismiss_only_matching_id():
    first, second = Toast("one"), Toast("two")
    state = reduce(AppState(), ToastShown(second))
    assert reduce(state, ToastDismissed(first.id)).toast == second
    assert reduce(state, ToastDismissed(second.id)).toast is None


def test_store_notifies_subscribers():
    store = Store()
    seen = []
    unsubscribe = store.subscribe(lambda s: seen.append(s.current_view))
    store.dispatch(LoggedIn(user=ADMIN, home_view="admin-dashboard"))
    unsubscribe()
    store.dispatch(Navigated("admin-users"))
    assert seen == ["admin-dashboard"]
    assert store.state.current_view == "admin-users"


def test_unknown_action_is_rejected():
    with pytest.raises(TypeError):
        reduce(AppState(), object())


def test_password_form_validation():
    with pytest.raises(ValidationFailure, match="do not match"):
        validate_new_password("secret1", "secret2")
    with pytest.raises(ValidationFailure, match="at least 6"):
        validate_new_password("abc", "abc")
    validate_new_password("secret1", "secret1")
