"""Domain client for the authenticated user's identity."""

from __future__ import annotations

from _errors import ApiError, ConfigError
from clients._base import BaseFreshBooksClient
from models import Identity

__all__ = ["IdentityClient"]


class IdentityClient:
    def __init__(self, base: BaseFreshBooksClient) -> None:
        self._base = base

    async def get_identity(self) -> Identity:
        """Account and business ids of the first business membership."""
        data = await self._base.get("/auth/api/v1/users/me")
        try:
            memberships = data["response"]["business_memberships"]
        except (KeyError, TypeError) as exc:
            raise ApiError(200, "Unexpected identity response", str(data)) from exc

        if not memberships:
            raise ConfigError("No business memberships found on this account.")

        business = memberships[0]["business"]
        return Identity(account_id=str(business["account_id"]), business_id=int(business["id"]))
