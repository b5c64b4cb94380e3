"""
API Dependencies
Common dependencies for API endpoints
"""

from typing import Generator
from fastapi import Header
from sqlalchemy.orm import Session

from erp_inventory.core.database import get_db as _get_db


def get_db() -> Generator[Session, None, None]:
    """
    Database dependency - one session per request, rolled back on error.
    """
    yield from _get_db()


async def get_current_user_id(
    x_user_id: int = Header(..., alias="X-User-Id", description="Acting user")
) -> int:
    """
    Acting user for audit columns.

    Authentication happens upstream; this service only records who acted.
    """
    return x_user_id


async def get_company_id(
    x_company_id: int = Header(..., alias="X-Company-Id", description="Tenant company")
) -> int:
    """Company scope for catalog lookups and new records."""
    return x_company_id
