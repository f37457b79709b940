"""
Request identity

Builds the AccessContext from headers set by the upstream identity provider.
The API trusts these headers; authenticating the caller happens before it.
"""

from typing import Optional

from flask import request

from ...domain.sharing.value_objects import AccessContext

TENANT_HEADER = "X-Tenant-Id"
USER_HEADER = "X-User-Id"
PLANS_HEADER = "X-User-Plans"
COUNTRY_HEADER = "CF-IPCountry"
CITY_HEADER = "X-Geo-City"


def current_tenant_id() -> Optional[str]:
    return request.headers.get(TENANT_HEADER) or None


def current_user_id() -> Optional[str]:
    return request.headers.get(USER_HEADER) or None


def current_plans():
    """Caller plans from X-User-Plans; None when the header is absent."""
    raw = request.headers.get(PLANS_HEADER)
    if raw is None:
        return None
    return frozenset(plan.strip() for plan in raw.split(",") if plan.strip())


def client_ip() -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr


def access_context(password: Optional[str] = None) -> AccessContext:
    """Build the access context for the current request."""
    return AccessContext(
        password=password,
        caller_id=current_user_id(),
        tenant_id=current_tenant_id(),
        caller_plans=current_plans(),
        ip_address=client_ip(),
        user_agent=request.headers.get("User-Agent"),
        country=request.headers.get(COUNTRY_HEADER),
        city=request.headers.get(CITY_HEADER),
    )
