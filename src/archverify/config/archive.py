"""Archive service configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import int_env_var, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

ARCHIVE_TIMEOUT_SECONDS = 30.0
DEFAULT_CLIENT_CERT = Path("client_certs") / "svc-dms.pem"


@dataclass(frozen=True, slots=True)
class ArchiveConfig:
    metadata_url: str
    client_cert: Path
    resilience: ResilienceConfig


def get_archive_config(*, resilience: ResilienceConfig | None = None) -> ArchiveConfig:
    values = require_env_vars(("ARCHVERIFY_METADATA_URL",))
    metadata_url = values["ARCHVERIFY_METADATA_URL"].rstrip("/")
    client_cert = Path(optional_env_var("ARCHVERIFY_CLIENT_CERT") or DEFAULT_CLIENT_CERT)
    retries = int_env_var("ARCHVERIFY_HTTP_RETRIES", 0)

    return ArchiveConfig(
        metadata_url=metadata_url,
        client_cert=client_cert,
        resilience=resilience
        or ResilienceConfig(
            name="archive",
            base_url=metadata_url,
            timeout_seconds=ARCHIVE_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=retries),
            ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
            client_cert=str(client_cert),
        ),
    )
