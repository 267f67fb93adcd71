# =============================================================================
# File: app/security/tenant_context.py
# Description: Per-request tenant identity passed explicitly through services
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.common.exceptions.exceptions import TenantRequiredError

TENANT_HEADER = "x-tenant-id"


@dataclass(frozen=True)
class TenantContext:
    """
    Tenant identity for a single request or consumed event.

    A fresh instance is built per request and handed to every application
    service call; nothing about the tenant lives in module or task state.
    """

    current_tenant: Optional[str] = None

    @classmethod
    def from_header(cls, value: Optional[str]) -> TenantContext:
        tenant = value.strip() if value else None
        return cls(current_tenant=tenant or None)

    @classmethod
    def of(cls, tenant_id: str) -> TenantContext:
        return cls.from_header(tenant_id)

    @property
    def has_tenant(self) -> bool:
        return self.current_tenant is not None

    @property
    def tenant_id(self) -> str:
        """The tenant id; raises TenantRequiredError when none was supplied."""
        if self.current_tenant is None:
            raise TenantRequiredError()
        return self.current_tenant
