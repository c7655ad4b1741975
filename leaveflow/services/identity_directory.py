import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from leaveflow.core.config import settings
from leaveflow.core.exceptions import ConflictError, ServiceUnavailableError

logger = logging.getLogger(__name__)


class IdentityDirectory(ABC):
    """Where account identities live besides the local users table."""

    @abstractmethod
    def create_identity(
        self,
        *,
        employee_id: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> Optional[str]:
        """Create the identity and return its external id (None when nothing remote exists)."""

    @abstractmethod
    def delete_identity(self, external_id: Optional[str]) -> None:
        """Remove an identity created by create_identity."""


class LocalIdentityDirectory(IdentityDirectory):
    """Credentials are only kept in the local store; there is nothing to reserve."""

    def create_identity(self, **kwargs) -> Optional[str]:
        return None

    def delete_identity(self, external_id: Optional[str]) -> None:
        return None


class RemoteIdentityDirectory(IdentityDirectory):
    def __init__(self, base_url: str, api_token: Optional[str] = None, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def create_identity(
        self,
        *,
        employee_id: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> Optional[str]:
        """
        Create the remote identity.

        Raises:
            ConflictError: the directory already knows this email or username.
            ServiceUnavailableError: the directory could not be reached or failed.
        """
        payload = {
            "username": employee_id,
            "email_address": email,
            "password": password,
            "first_name": first_name or "User",
            "last_name": last_name or "",
        }
        try:
            response = requests.post(
                f"{self.base_url}/users", json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error(f"Identity directory unreachable: {exc}")
            raise ServiceUnavailableError("Authentication service unavailable. Please try again later.") from exc

        if response.status_code == 409:
            raise ConflictError(
                "An account with this email or employee ID already exists in the authentication system."
            )
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.error(f"Identity directory rejected account creation: {response.status_code}")
            raise ServiceUnavailableError("Failed to create user account in authentication system.") from exc
        return str(response.json()["id"])

    def delete_identity(self, external_id: Optional[str]) -> None:
        if not external_id:
            return
        response = requests.delete(
            f"{self.base_url}/users/{external_id}", headers=self._headers(), timeout=self.timeout
        )
        response.raise_for_status()
        logger.info(f"Removed identity {external_id} from directory")


def get_identity_directory() -> IdentityDirectory:
    if settings.identity_directory_url:
        return RemoteIdentityDirectory(
            settings.identity_directory_url,
            api_token=settings.identity_directory_token,
            timeout=settings.identity_directory_timeout,
        )
    return LocalIdentityDirectory()
