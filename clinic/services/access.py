"""
Role and permission resolution.

A user's roles come from :class:`~clinic.models.UserRole`.  Holding
``admin`` or ``superadmin`` grants every module permission outright;
everyone else is checked against the ``RolePermission`` grant rows of
their roles.  Any missing data resolves to "denied".
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from clinic.models import (
    ADMIN_ROLES, MODULE_CHOICES, PERMISSION_CHOICES, ROLE_CHOICES, RolePermission, UserRole,
)

logger = logging.getLogger(__name__)

MODULES = [m for m, _ in MODULE_CHOICES]
PERMISSION_TYPES = [p for p, _ in PERMISSION_CHOICES]
ROLES = [r for r, _ in ROLE_CHOICES]


def _roles_cache_key(user_id) -> str:
    return f'clinic:roles:{user_id}'


def get_user_roles(user) -> Set[str]:
    if not user or not getattr(user, 'is_authenticated', False):
        return set()
    key = _roles_cache_key(user.pk)
    roles = cache.get(key)
    if roles is None:
        roles = set(UserRole.objects.filter(user_id=user.pk).values_list('role', flat=True))
        cache.set(key, roles, settings.ROLE_CACHE_SECONDS)
    return set(roles)


def invalidate_roles(user_id) -> None:
    cache.delete(_roles_cache_key(user_id))


def is_admin(user) -> bool:
    return bool(get_user_roles(user) & ADMIN_ROLES)


def has_role(user, role: str) -> bool:
    return role in get_user_roles(user)


def grants_for_roles(roles: Iterable[str]) -> Dict[str, Set[str]]:
    """Return ``{module: {permission, ...}}`` for the given roles."""
    grants: Dict[str, Set[str]] = {}
    rows = RolePermission.objects.filter(role__in=list(roles)).values_list('module', 'permission')
    for module, perm in rows:
        grants.setdefault(module, set()).add(perm)
    return grants


def has_permission(user, module: str, perm: str) -> bool:
    roles = get_user_roles(user)
    if not roles:
        return False
    if roles & ADMIN_ROLES:
        return True
    allowed = perm in grants_for_roles(roles).get(module, set())
    if not allowed:
        logger.warning('permission denied user=%s module=%s perm=%s', user.pk, module, perm)
    return allowed


def can_view(user, module: str) -> bool:
    return has_permission(user, module, 'view')


def can_add(user, module: str) -> bool:
    return has_permission(user, module, 'add')


def can_edit(user, module: str) -> bool:
    return has_permission(user, module, 'edit')


def can_delete(user, module: str) -> bool:
    return has_permission(user, module, 'delete')


def permission_matrix(user) -> Dict[str, List[str]]:
    """Every module with the permission types the user holds on it."""
    roles = get_user_roles(user)
    if roles & ADMIN_ROLES:
        return {m: list(PERMISSION_TYPES) for m in MODULES}
    grants = grants_for_roles(roles) if roles else {}
    return {m: [p for p in PERMISSION_TYPES if p in grants.get(m, set())] for m in MODULES}


def role_grants(role: str) -> Dict[str, List[str]]:
    grants = grants_for_roles([role])
    return {m: [p for p in PERMISSION_TYPES if p in grants.get(m, set())] for m in MODULES}


def set_grant(role: str, module: str, perm: str, granted: bool) -> bool:
    """Insert or delete one grant row; returns the resulting state."""
    if granted:
        RolePermission.objects.get_or_create(role=role, module=module, permission=perm)
    else:
        RolePermission.objects.filter(role=role, module=module, permission=perm).delete()
    return granted


@transaction.atomic
def set_user_roles(user, roles: Iterable[str]) -> List[str]:
    """Replace the user's role set."""
    wanted = sorted(set(roles))
    UserRole.objects.filter(user=user).delete()
    UserRole.objects.bulk_create([UserRole(user=user, role=r) for r in wanted])
    invalidate_roles(user.pk)
    return wanted


def grant_role(user, role: Optional[str]) -> None:
    if not role:
        return
    UserRole.objects.get_or_create(user=user, role=role)
    invalidate_roles(user.pk)


@transaction.atomic
def ensure_first_superadmin(user) -> bool:
    """Make ``user`` superadmin when no admin or superadmin exists yet.

    Returns True when the role was granted.
    """
    if not user or not getattr(user, 'pk', None):
        return False
    if UserRole.objects.select_for_update().filter(role__in=ADMIN_ROLES).exists():
        return False
    UserRole.objects.get_or_create(user=user, role='superadmin')
    invalidate_roles(user.pk)
    logger.info('bootstrapped first superadmin user=%s', user.pk)
    return True
