"""Remote interaction service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

REMOTE_SERVICE_NAME = "interactions"


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    """Holds the remote like/comment service connection settings."""

    base_url: str
    api_token: str | None
    resilience: ResilienceConfig


def build_resilience_config(base_url: str, *, api_token: str | None = None) -> ResilienceConfig:
    headers = {
        "Accept": "application/json",
        "Cache-Control": "no-cache, no-store, must-revalidate",
        "Pragma": "no-cache",
    }
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"
    return ResilienceConfig(
        name=REMOTE_SERVICE_NAME,
        base_url=base_url.rstrip("/"),
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers=headers,
    )


def get_remote_config(*, resilience: ResilienceConfig | None = None) -> RemoteConfig:
    values = require_env_vars(("VIBESYNC_API_BASE_URL",))
    base_url = values["VIBESYNC_API_BASE_URL"].strip()
    api_token = optional_env_var("VIBESYNC_API_TOKEN")
    return RemoteConfig(
        base_url=base_url,
        api_token=api_token,
        resilience=resilience or build_resilience_config(base_url, api_token=api_token),
    )
