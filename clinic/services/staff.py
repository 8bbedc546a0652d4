import logging
from typing import List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import QuerySet

from clinic.models import Staff, UserRole
from clinic.services import access
from clinic.services.audit import log_action

User = get_user_model()
logger = logging.getLogger(__name__)


class AccountError(ValueError):
    pass


def doctors() -> QuerySet:
    return Staff.objects.filter(active=True, staff_type__role_mapping='doctor').select_related('staff_type')


@transaction.atomic
def create_login(staff: Staff, *, email: str, password: str, full_name: str, created_by=None) -> User:
    """Create a login for an existing staff record and link it.

    The staff type's mapped role is granted to the new account.
    """
    if staff.user_id:
        raise AccountError('Staff member already has a login.')
    email = email.strip().lower()
    if User.objects.filter(username__iexact=email).exists() or User.objects.filter(email__iexact=email).exists():
        raise AccountError('A user with this email already exists.')
    user = User.objects.create_user(username=email, email=email, password=password, full_name=full_name)
    staff.user = user
    if not staff.email:
        staff.email = email
    staff.save(update_fields=['user', 'email', 'updated_at'])
    if staff.staff_type_id:
        access.grant_role(user, staff.staff_type.role_mapping)
    log_action(user=created_by, action='staff.create_login', table_name='staff', record_id=staff.pk,
               new_data={'user_id': user.pk})
    logger.info('login created staff=%s user=%s', staff.pk, user.pk)
    return user


def set_active(staff: Staff, active: bool, *, user=None) -> Staff:
    staff.active = active
    staff.save(update_fields=['active', 'updated_at'])
    log_action(user=user, action='staff.reactivate' if active else 'staff.deactivate', table_name='staff',
               record_id=staff.pk)
    return staff


def staff_with_roles(role_filter: Optional[str] = None) -> List[dict]:
    """Staff rows with the roles held by their linked login.

    ``role_filter`` limits the list to one role; ``'no-role'`` keeps staff
    whose login holds no role (or who have no login).
    """
    staff = list(Staff.objects.select_related('user', 'staff_type').order_by('name'))
    user_ids = [s.user_id for s in staff if s.user_id]
    roles_by_user: dict = {}
    for uid, role in UserRole.objects.filter(user_id__in=user_ids).values_list('user_id', 'role'):
        roles_by_user.setdefault(uid, []).append(role)
    rows = []
    for s in staff:
        roles = sorted(roles_by_user.get(s.user_id, [])) if s.user_id else []
        if role_filter == 'no-role' and roles:
            continue
        if role_filter and role_filter != 'no-role' and role_filter not in roles:
            continue
        rows.append({'staff': s, 'roles': roles})
    return rows


def replace_roles(staff: Staff, roles: List[str], *, user=None) -> List[str]:
    if not staff.user_id:
        raise AccountError('Staff member has no login.')
    old = sorted(access.get_user_roles(staff.user))
    new = access.set_user_roles(staff.user, roles)
    log_action(user=user, action='roles.replace', table_name='user_roles', record_id=staff.user_id,
               old_data={'roles': old}, new_data={'roles': new})
    return new
