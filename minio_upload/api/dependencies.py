"""
FastAPI dependency injection.

A host application's upload feature declares `UploadProviderDep` in its
route signatures to receive the configured provider. The provider (and the
object-storage client it owns) is created on first use and shared by every
request for the rest of the process.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status

from ..config.settings import Settings, get_settings
from ..core.upload.provider import DependencyUnavailable, ObjectStorageProvider
from ..infrastructure.storage.client import create_upload_provider

logger = logging.getLogger(__name__)

_upload_provider: Optional[ObjectStorageProvider] = None


def get_upload_provider(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ObjectStorageProvider:
    """
    Provide the shared upload provider.

    Raises 503 if the object-storage client library is unavailable.
    """
    global _upload_provider

    if _upload_provider is not None:
        return _upload_provider

    try:
        _upload_provider = create_upload_provider(
            settings.provider_config,
            mock_mode=settings.storage_mock_mode,
        )
    except DependencyUnavailable as e:
        logger.error("Upload provider unavailable", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )

    logger.info(
        "Created shared upload provider",
        extra={"mock_mode": settings.storage_mock_mode}
    )

    return _upload_provider


def reset_upload_provider() -> None:
    """Drop the shared provider so the next request builds a new one."""
    global _upload_provider
    _upload_provider = None


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

UploadProviderDep = Annotated[ObjectStorageProvider, Depends(get_upload_provider)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
