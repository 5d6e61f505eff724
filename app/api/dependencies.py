"""
app/api/dependencies.py

Shared FastAPI dependencies for request scoping.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Header


@dataclass(frozen=True)
class RequestContext:
    """
    Tenant and user the request acts for.

    Resolved from headers set by the authenticating gateway in front of the API.
    """

    tenant_id: UUID
    user_id: UUID | None = None


def get_request_context(
    x_tenant_id: UUID = Header(..., description="Tenant the request is scoped to"),
    x_user_id: UUID | None = Header(default=None, description="Acting user, if any"),
) -> RequestContext:
    return RequestContext(tenant_id=x_tenant_id, user_id=x_user_id)
