"""Use cases for managing users."""

from .authenticate_user import AuthenticationStatus, authenticate_user
from .create_user import create_user
from .grant_announcer import grant_announcer

__all__ = ["AuthenticationStatus", "authenticate_user", "create_user", "grant_announcer"]
