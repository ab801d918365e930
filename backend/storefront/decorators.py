# Overview: Request decorators for tenant-scoped API routes.

from functools import wraps
from flask import jsonify, g

from .services.tenant_service import require_tenant as resolve_tenant, TenantAccessError


def require_tenant(f):
    """
    Resolve the tenant named in the URL and establish tenant context.

    MULTI-TENANT: Sets g.tenant and g.tenant_id. Unknown or inactive tenants
    return 404. The wrapped view receives tenant_id unchanged.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            tenant = resolve_tenant(kwargs["tenant_id"])
        except TenantAccessError as e:
            return jsonify({"error": str(e)}), 404

        g.tenant = tenant
        g.tenant_id = tenant.id
        return f(*args, **kwargs)

    return decorated_function
