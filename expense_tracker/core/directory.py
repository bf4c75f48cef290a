"""Client for the identity provider's user directory.

Only used when a user submits their first expense and no local account
exists yet, to pick up a real email address, display name and avatar.
"""
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..config import settings

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """The directory could not return a profile for the requested user."""


class EmailAddress(BaseModel):
    id: Optional[str] = None
    email_address: Optional[str] = None


class DirectoryProfile(BaseModel):
    id: Optional[str] = None
    email_addresses: List[EmailAddress] = []
    primary_email_address_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    image_url: Optional[str] = None

    def primary_email(self) -> Optional[str]:
        """Address flagged as primary, else the first one listed."""
        primary = next(
            (
                e
                for e in self.email_addresses
                if self.primary_email_address_id is not None and e.id == self.primary_email_address_id
            ),
            None,
        )
        if primary is None and self.email_addresses:
            primary = self.email_addresses[0]
        return primary.email_address if primary is not None else None

    def display_name(self) -> Optional[str]:
        for candidate in (self.first_name, self.last_name, self.full_name):
            if candidate is not None:
                return candidate
        return None


class IdentityDirectory:
    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def get_profile(self, external_id: str) -> DirectoryProfile:
        if not self.base_url:
            raise DirectoryError("Identity directory is not configured")

        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = client.get(f"/users/{external_id}")
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise DirectoryError(
                f"Directory returned {e.response.status_code} for user {external_id}"
            ) from e
        except httpx.HTTPError as e:
            raise DirectoryError(f"Directory request failed: {e}") from e
        except ValueError as e:
            raise DirectoryError("Directory returned a non-JSON body") from e

        if not isinstance(payload, dict):
            raise DirectoryError("Directory payload must be a JSON object")
        try:
            return DirectoryProfile(**payload)
        except PydanticValidationError as e:
            raise DirectoryError(f"Malformed directory profile: {e}") from e


def get_directory() -> IdentityDirectory:
    return IdentityDirectory(
        base_url=settings.identity_api_url,
        api_key=settings.identity_api_key,
        timeout=settings.identity_api_timeout,
    )
