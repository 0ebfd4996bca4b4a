"""Route modules exposed by the API package."""

from . import auth, categories, clients, groups, ping, tickets, users

__all__ = ["auth", "categories", "clients", "groups", "ping", "tickets", "users"]
