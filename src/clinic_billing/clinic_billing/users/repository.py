from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role, Sector
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        sector: Optional[Sector],
        hourly_rate: Optional[float] = None,
    ) -> int:
        raise NotImplementedError

    def set_hourly_rate(self, user_id: int, hourly_rate: Optional[float]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def delete_guardian_by_email(self, email: str) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        sector: Optional[Sector] = None,
    ) -> Sequence[User]:
        raise NotImplementedError
