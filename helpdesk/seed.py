"""Seed the database with the initial accounts and demo tickets. Safe to run repeatedly."""
import asyncio
import logging

from helpdesk.config import get_settings
from helpdesk.schemas.common import TicketStatus, UserRole
from helpdesk.storage.db import close_db, get_session, init_db
from helpdesk.storage.repositories import (
    ticket_create,
    ticket_list,
    ticket_set_status,
    user_create,
    user_get_by_username,
)

logger = logging.getLogger(__name__)

INITIAL_USERS = [
    {
        "username": "admin",
        "password": "admin123",
        "department": "IT Support",
        "role": UserRole.ADMIN.value,
        "full_name": "System Administrator",
        "email": "admin@telecel.com",
    },
    {
        "username": "john.doe",
        "password": "password123",
        "department": "Sales",
        "role": UserRole.USER.value,
        "full_name": "John Doe",
        "email": "john.doe@telecel.com",
    },
    {
        "username": "jane.smith",
        "password": "password123",
        "department": "HR",
        "role": UserRole.USER.value,
        "full_name": "Jane Smith",
        "email": "jane.smith@telecel.com",
    },
]

# (owner username, title, description, department, status)
INITIAL_TICKETS = [
    (
        "john.doe",
        "Cannot access CRM",
        "When I try to login to the CRM portal, it gives a 502 Bad Gateway error.",
        "Sales",
        TicketStatus.PENDING,
    ),
    (
        "jane.smith",
        "Printer Jam on 2nd Floor",
        "The main network printer is jamming repeatedly with error code E-45.",
        "HR",
        TicketStatus.IN_PROGRESS,
    ),
]


async def seed() -> None:
    settings = get_settings()
    await init_db()
    async with get_session() as session:
        for fields in INITIAL_USERS:
            if await user_get_by_username(session, fields["username"]):
                logger.info("User %s already present, skipping", fields["username"])
                continue
            await user_create(session, company_id_prefix=settings.company_id_prefix, **fields)

        existing_titles = {t.title for t, _ in await ticket_list(session)}
        for username, title, description, department, status in INITIAL_TICKETS:
            if title in existing_titles:
                continue
            owner = await user_get_by_username(session, username)
            if not owner:
                continue
            t = await ticket_create(
                session, owner.id, title=title, description=description, department=department
            )
            if status != TicketStatus.PENDING:
                await ticket_set_status(session, t.id, status.value)
    await close_db()


def main() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    asyncio.run(seed())
    logger.info("Seed complete")


if __name__ == "__main__":
    main()
