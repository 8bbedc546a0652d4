"""
Permission classes backed by the role/module grant table.
"""
from rest_framework.permissions import BasePermission

from clinic.services import access

METHOD_PERMISSIONS = {
    'GET': 'view',
    'HEAD': 'view',
    'OPTIONS': 'view',
    'POST': 'add',
    'PUT': 'edit',
    'PATCH': 'edit',
    'DELETE': 'delete',
}


class ModulePermission(BasePermission):
    """Check ``(module, permission type)`` for the request's method.

    Subclasses set ``module``; ``perm`` pins a fixed permission type
    regardless of the method (e.g. receiving a PO is an edit).
    """
    module: str = ''
    perm: str | None = None
    message = 'You do not have permission to perform this action.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        perm = self.perm or METHOD_PERMISSIONS.get(request.method)
        if not perm:
            return False
        return access.has_permission(user, self.module, perm)


def module_permission(module: str, perm: str | None = None) -> type[ModulePermission]:
    return type(
        f'{module.title().replace("_", "")}{(perm or "").title()}Permission',
        (ModulePermission,),
        {'module': module, 'perm': perm},
    )


class IsAdminRole(BasePermission):
    """Allow only admin or superadmin."""
    message = 'Only admins can perform this action.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and access.is_admin(user))


class IsDoctorOrAdmin(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return access.is_admin(user) or access.has_role(user, 'doctor')
