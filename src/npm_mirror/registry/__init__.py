"""Registry access: HTTP client and the per-run manifest cache."""

from .cache import ManifestCache
from .client import (
    ADMISSION_QUOTA,
    DEFAULT_TIMEOUT,
    RETRY_ATTEMPTS,
    USER_AGENT,
    RegistryClient,
    package_url,
)

__all__ = [
    "ADMISSION_QUOTA",
    "DEFAULT_TIMEOUT",
    "ManifestCache",
    "RETRY_ATTEMPTS",
    "RegistryClient",
    "USER_AGENT",
    "package_url",
]
