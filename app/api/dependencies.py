"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, status

from app.config import ScraperSettings, get_scraper_settings

TENANT_HEADER = "X-Tenant-ID"
TRIGGER_HEADER = "X-Scraper-Trigger"
MAX_TENANT_ID_LENGTH = 64


def get_tenant_id(x_tenant_id: str | None = Header(default=None, alias=TENANT_HEADER)) -> str:
    """
    Resolve the calling tenant from the X-Tenant-ID header.
    """

    tenant_id = (x_tenant_id or "").strip()
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{TENANT_HEADER} header is required.",
        )
    if len(tenant_id) > MAX_TENANT_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{TENANT_HEADER} must be at most {MAX_TENANT_ID_LENGTH} characters.",
        )
    return tenant_id


def require_trigger_token(
    x_scraper_trigger: str | None = Header(default=None, alias=TRIGGER_HEADER),
    settings: ScraperSettings = Depends(get_scraper_settings),
) -> None:
    """
    Allow the cross-tenant sweep trigger only for callers holding SCRAPER_TRIGGER_TOKEN.
    """

    expected = settings.trigger_token
    supplied = (x_scraper_trigger or "").strip()
    if not expected or not supplied or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{TRIGGER_HEADER} header is missing or invalid.",
        )
