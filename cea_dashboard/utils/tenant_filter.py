"""
Tenant Filter Utility
Shared helper for applying consistent organization filtering across Supabase queries
"""
from typing import Optional, Any


class MissingTenantError(ValueError):
    """Raised when a query would run without an organization filter."""


def apply_tenant_filter(query: Any, organization_id: Optional[str], column: str = "organization_id") -> Any:
    """
    Apply organization filtering to a Supabase query.

    Every query against tenant-owned tables goes through here. The store does
    not enforce isolation on its own, so a missing organization id is an
    error rather than an unfiltered query.

    Args:
        query: Supabase query builder (from supabase.table(...).select/update/delete(...))
        organization_id: Organization the caller acts for
        column: Name of the organization column

    Returns:
        Query with the organization filter applied

    Raises:
        MissingTenantError: If organization_id is empty

    Usage:
        query = supabase.table("contacts").select("*")
        query = apply_tenant_filter(query, current_user.organization_id)
        response = query.execute()
    """
    if not organization_id:
        raise MissingTenantError(f"organization_id is required to query by {column}")
    return query.eq(column, organization_id)

