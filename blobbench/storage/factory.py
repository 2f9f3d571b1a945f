"""Open and close storage backends from provider configuration."""

import logging

from blobbench.config import BenchmarkConfig, ProviderConfig
from blobbench.storage.base import StorageBackend
from blobbench.storage.local import LocalStorage
from blobbench.storage.memory import MemoryStorage
from blobbench.storage.s3 import S3RequestsStorage

logger = logging.getLogger(__name__)


def open_storage(provider: ProviderConfig, settings: BenchmarkConfig | None = None) -> StorageBackend:
    """Get storage backend based on provider configuration."""
    provider.validate()
    settings = settings or BenchmarkConfig()

    if provider.type == "s3":
        backend = S3RequestsStorage(
            endpoint=provider.endpoint,
            access_key=provider.access_key,
            secret_key=provider.secret_key,
            bucket=provider.bucket,
            region=provider.region,
            prefix=provider.prefix,
            max_retries=settings.max_retries,
            timeout=settings.timeout_seconds,
        )
    elif provider.type == "local":
        backend = LocalStorage(base_path=provider.base_path)
    else:
        backend = MemoryStorage()

    logger.debug("opened %s for provider %s", backend.name, provider.name)
    return backend


def close_storage(backend: StorageBackend) -> None:
    """Release a backend opened with open_storage."""
    backend.close()
    logger.debug("closed %s", backend.name)
