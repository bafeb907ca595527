"""
Authentication collaborator.

The engine only needs to know who the current user is; signing in and
session refresh happen elsewhere.
"""

from abc import ABC, abstractmethod
from typing import Optional


class AuthProvider(ABC):
    """Supplies the id used to scope all list/create calls"""

    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        """Return the signed-in user's id, or None when signed out"""


class StaticAuthProvider(AuthProvider):
    """Fixed user, taken from settings"""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self.user_id
