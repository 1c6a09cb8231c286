"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from depsentinel.exceptions import ConfigurationError

NPM_BULK_ADVISORY_URL = "https://registry.npmjs.org/-/npm/v1/security/advisories/bulk"

DEFAULT_SECRET_ENV_VAR = "OHDEAR_HEALTH_SECRET"
DEFAULT_SECRET_HEADER = "oh-dear-health-check-secret"
DEFAULT_MANIFEST_PATH = "src/app/api/health/deps-manifest.json"
DEFAULT_DOMAIN_ENV_VAR = "VERCEL_PROJECT_PRODUCTION_URL"
HEALTH_ROUTE = "/api/health"

# Environment variable keys
_ENV_SECRET_ENV_VAR = "DEPSENTINEL_SECRET_ENV_VAR"
_ENV_SECRET_HEADER = "DEPSENTINEL_SECRET_HEADER"
_ENV_ADVISORY_URL = "DEPSENTINEL_ADVISORY_URL"
_ENV_ADVISORY_TIMEOUT = "DEPSENTINEL_ADVISORY_TIMEOUT"
_ENV_TREE_TIMEOUT = "DEPSENTINEL_TREE_TIMEOUT"
_ENV_LOCK_TTL = "DEPSENTINEL_LOCK_TTL"
_ENV_MANIFEST_PATH = "DEPSENTINEL_MANIFEST_PATH"
_ENV_DOMAIN_ENV_VAR = "DEPSENTINEL_DOMAIN_ENV_VAR"


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Deployment knobs shared by the build pipeline, CLI and health endpoint.

    The health secret is not stored here; it is looked up under
    ``secret_env_var`` on every request.
    """

    secret_env_var: str = DEFAULT_SECRET_ENV_VAR
    secret_header: str = DEFAULT_SECRET_HEADER
    advisory_url: str = NPM_BULK_ADVISORY_URL
    advisory_timeout: float = 8.0
    tree_timeout: float = 120.0
    lock_ttl: float = 30.0
    manifest_path: str = DEFAULT_MANIFEST_PATH
    domain_env_var: str = DEFAULT_DOMAIN_ENV_VAR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            secret_env_var=env.get(_ENV_SECRET_ENV_VAR) or DEFAULT_SECRET_ENV_VAR,
            secret_header=(env.get(_ENV_SECRET_HEADER) or DEFAULT_SECRET_HEADER).lower(),
            advisory_url=env.get(_ENV_ADVISORY_URL) or NPM_BULK_ADVISORY_URL,
            advisory_timeout=_float(env, _ENV_ADVISORY_TIMEOUT, 8.0),
            tree_timeout=_float(env, _ENV_TREE_TIMEOUT, 120.0),
            lock_ttl=_float(env, _ENV_LOCK_TTL, 30.0),
            manifest_path=env.get(_ENV_MANIFEST_PATH) or DEFAULT_MANIFEST_PATH,
            domain_env_var=env.get(_ENV_DOMAIN_ENV_VAR) or DEFAULT_DOMAIN_ENV_VAR,
        )

    def public_health_url(self, environ: Mapping[str, str] | None = None) -> str | None:
        """Return the public health URL if a deployment domain is known."""
        env = os.environ if environ is None else environ
        domain = (env.get(self.domain_env_var) or "").strip().rstrip("/")
        if not domain:
            return None
        if not domain.startswith(("http://", "https://")):
            domain = f"https://{domain}"
        return f"{domain}{HEALTH_ROUTE}"
