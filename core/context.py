"""
Explicit execution context handed to the token provider and API client.

Credentials and endpoints travel in this object instead of being read from
module globals, so several contexts can coexist (tests, scheduled runs).
"""

from typing import Optional
from pydantic import BaseModel, SecretStr

from core.config import Settings, settings as default_settings
from core.exceptions import ConfigurationError


class ExecutionContext(BaseModel):
    """Credentials and endpoint layout for one reporting service."""

    base_url: str
    email: str
    password: SecretStr
    auth_path: str = "/auth/login"
    meta_path: str = "/cubejs-api/v1/meta"
    load_path: str = "/cubejs-api/v1/load"
    token_field: str = "token"
    timeout: Optional[float] = None

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    @property
    def auth_url(self) -> str:
        return self.url(self.auth_path)

    @property
    def meta_url(self) -> str:
        return self.url(self.meta_path)

    @property
    def load_url(self) -> str:
        return self.url(self.load_path)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        base_url: Optional[str] = None
    ) -> "ExecutionContext":
        """Build a context from settings, letting explicit arguments win."""
        settings = settings or default_settings
        email = email or settings.API_EMAIL
        password = password or settings.API_PASSWORD

        if not email or not password:
            raise ConfigurationError(
                "Email and password are required",
                context={"email_set": bool(email), "password_set": bool(password)}
            )

        return cls(
            base_url=base_url or settings.API_BASE_URL,
            email=email,
            password=password,
            auth_path=settings.AUTH_PATH,
            meta_path=settings.META_PATH,
            load_path=settings.LOAD_PATH,
            token_field=settings.AUTH_TOKEN_FIELD,
            timeout=settings.REQUEST_TIMEOUT
        )
