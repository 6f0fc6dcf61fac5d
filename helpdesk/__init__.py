"""Helpdesk: support tickets, user management and per-ticket chat."""
