"""GitHub App authentication and installation tokens."""

import time
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

import httpx
import jwt

from verifier.server.config import Settings, get_settings


GITHUB_API_URL = "https://api.github.com"


@dataclass
class InstallationAuth:
    """Authentication for a GitHub App installation."""

    installation_id: int
    token: str
    expires_at: float


class GitHubAppAuth:
    """GitHub App authentication manager."""

    def __init__(self, settings: Settings | None = None):
        """Initialize GitHub App authentication.

        Args:
            settings: Server settings (uses default if not provided)
        """
        self.settings = settings or get_settings()
        self._private_key = self.settings.get_private_key()
        self._app_id = self.settings.github_app_id
        self._installation_tokens: dict[int, InstallationAuth] = {}
        self._slug: str | None = None

    def generate_jwt(self, expiration_seconds: int = 600) -> str:
        """Generate a JWT for GitHub App authentication.

        Args:
            expiration_seconds: JWT expiration time in seconds

        Returns:
            JWT token string
        """
        now = int(time.time())
        payload = {
            "iat": now - 60,  # Issued at (60s in the past for clock drift)
            "exp": now + expiration_seconds,
            "iss": str(self._app_id),
        }
        return jwt.encode(payload, self._private_key, algorithm="RS256")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.generate_jwt()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def get_installation_token(self, installation_id: int) -> str:
        """Get an installation access token.

        Args:
            installation_id: GitHub App installation ID

        Returns:
            Installation access token
        """
        cached = self._installation_tokens.get(installation_id)
        if cached and cached.expires_at > time.time() + 300:  # 5 min buffer
            return cached.token

        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{GITHUB_API_URL}/app/installations/{installation_id}/access_tokens",
                headers=self._headers(),
            )
            response.raise_for_status()
            data = response.json()

        expires_at = time.time() + 3600  # Default 1 hour
        if "expires_at" in data:
            exp_dt = datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))
            expires_at = exp_dt.timestamp()

        auth = InstallationAuth(
            installation_id=installation_id,
            token=data["token"],
            expires_at=expires_at,
        )
        self._installation_tokens[installation_id] = auth

        return auth.token

    async def _get_installation_id(self, path: str) -> int | None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{GITHUB_API_URL}{path}", headers=self._headers())
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()

        return data.get("id")

    async def get_installation_for_repo(self, repo_full_name: str) -> int | None:
        """Get installation ID for a repository (``owner/repo``)."""
        return await self._get_installation_id(f"/repos/{repo_full_name}/installation")

    async def get_installation_for_owner(self, owner: str) -> int | None:
        """Get installation ID for an organization or user account."""
        installation_id = await self._get_installation_id(f"/orgs/{owner}/installation")
        if installation_id is None:
            installation_id = await self._get_installation_id(f"/users/{owner}/installation")
        return installation_id

    async def get_token_for_repo(self, repo_full_name: str) -> str | None:
        """Get installation token for a repository.

        Returns:
            Installation access token or None if app not installed
        """
        installation_id = await self.get_installation_for_repo(repo_full_name)
        if not installation_id:
            return None
        return await self.get_installation_token(installation_id)

    async def get_token_for_owner(self, owner: str) -> str | None:
        """Get installation token for an organization or user account.

        Returns:
            Installation access token or None if app not installed
        """
        installation_id = await self.get_installation_for_owner(owner)
        if not installation_id:
            return None
        return await self.get_installation_token(installation_id)

    async def get_app_slug(self) -> str:
        """Get the app's slug; comments by the app are authored by ``<slug>[bot]``."""
        if self._slug is None:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{GITHUB_API_URL}/app", headers=self._headers())
                response.raise_for_status()
                self._slug = response.json()["slug"]
        return self._slug


@lru_cache
def get_github_app_auth() -> GitHubAppAuth:
    """Get cached GitHub App auth instance."""
    return GitHubAppAuth()
