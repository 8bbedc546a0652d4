"""
Staff, logins and role management.

``POST /api/staff/create-auth`` creates a login for an existing staff
record and is limited to admin and superadmin callers.  Its response
shape is ``{"success": true, "userId": ...}`` or
``{"success": false, "error": "..."}``.
"""
from __future__ import annotations

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Staff
from ..permissions import module_permission
from ..serializers.auth import CreateStaffAuthSerializer
from ..serializers.masters import StaffSerializer
from ..serializers.roles import GrantSerializer, RoleQuerySerializer, StaffRolesSerializer
from ..services import access
from ..services import staff as staff_service
from ..services.audit import log_action
from .common import list_or_create, retrieve_update_destroy


def _staff_qs():
    return Staff.objects.select_related('staff_type', 'user')


def _create_staff(serializer):
    password = serializer.validated_data.pop('password', '')
    staff = serializer.save()
    if password:
        try:
            staff_service.create_login(staff, email=staff.email, password=password, full_name=staff.name)
        except staff_service.AccountError as e:
            raise ValidationError({'email': str(e)})
    return staff


def _update_staff(serializer):
    serializer.validated_data.pop('password', None)
    return serializer.save()


@api_view(['GET', 'POST'])
@permission_classes([module_permission('staff')])
def staff_list(request):
    qs = _staff_qs()
    if request.query_params.get('staff_type_id'):
        qs = qs.filter(staff_type_id=request.query_params['staff_type_id'])
    return list_or_create(request, qs, StaffSerializer, table='staff', search_fields=('name', 'email', 'phone'),
                          on_create=_create_staff)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('staff')])
def staff_detail(request, pk):
    return retrieve_update_destroy(request, _staff_qs(), pk, StaffSerializer, table='staff', on_update=_update_staff)


@api_view(['POST'])
@permission_classes([module_permission('staff', 'edit')])
def staff_deactivate(request, pk):
    staff = get_object_or_404(_staff_qs(), pk=pk)
    staff_service.set_active(staff, False, user=request.user)
    return Response(StaffSerializer(staff).data)


@api_view(['POST'])
@permission_classes([module_permission('staff', 'edit')])
def staff_reactivate(request, pk):
    staff = get_object_or_404(_staff_qs(), pk=pk)
    staff_service.set_active(staff, True, user=request.user)
    return Response(StaffSerializer(staff).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors_list(request):
    """Active staff whose type maps to the doctor role (admission form picker)."""
    return Response([
        {'id': s.pk, 'name': s.name, 'specialization': s.specialization, 'staff_type_name': s.staff_type.name}
        for s in staff_service.doctors()
    ])


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_staff_auth(request):
    if not access.is_admin(request.user):
        return Response({'success': False, 'error': 'Only admins can create staff accounts'}, status=403)
    s = CreateStaffAuthSerializer(data=request.data)
    if not s.is_valid():
        return Response({'success': False, 'error': s.errors}, status=400)
    v = s.validated_data
    staff = Staff.objects.select_related('staff_type').filter(pk=v['staffId']).first()
    if staff is None:
        return Response({'success': False, 'error': 'Staff record not found'}, status=400)
    try:
        user = staff_service.create_login(staff, email=v['email'], password=v['password'], full_name=v['fullName'],
                                          created_by=request.user)
    except staff_service.AccountError as e:
        return Response({'success': False, 'error': str(e)}, status=400)
    return Response({'success': True, 'userId': user.pk})

create_staff_auth.cls.throttle_scope = 'staff_auth'


# ---------------------------------------------------------------------
# Role management
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([module_permission('role_management')])
def role_permissions(request):
    """GET ?role=<role> lists its grants; POST toggles one grant."""
    if request.method == 'GET':
        q = RoleQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        role = q.validated_data['role']
        return Response({'role': role, 'bypass': role in ('admin', 'superadmin'), 'permissions': access.role_grants(role)})

    s = GrantSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        access.set_grant(v['role'], v['module'], v['permission'], v['granted'])
        log_action(user=request.user, action='role_permissions.grant' if v['granted'] else 'role_permissions.revoke',
                   table_name='role_permissions', new_data={k: v[k] for k in ('role', 'module', 'permission')})
    return Response({'role': v['role'], 'permissions': access.role_grants(v['role'])})


@api_view(['GET'])
@permission_classes([module_permission('role_management', 'view')])
def staff_roles_list(request):
    role_filter = request.query_params.get('role') or None
    return Response([
        {
            'staff_id': row['staff'].pk,
            'name': row['staff'].name,
            'email': row['staff'].email,
            'staff_type_name': row['staff'].staff_type.name if row['staff'].staff_type else None,
            'user_id': row['staff'].user_id,
            'active': row['staff'].active,
            'roles': row['roles'],
        }
        for row in staff_service.staff_with_roles(role_filter)
    ])


@api_view(['GET', 'PUT'])
@permission_classes([module_permission('role_management')])
def staff_roles(request, pk):
    staff = get_object_or_404(_staff_qs(), pk=pk)
    if request.method == 'GET':
        roles = sorted(access.get_user_roles(staff.user)) if staff.user_id else []
        return Response({'staff_id': staff.pk, 'roles': roles})
    s = StaffRolesSerializer(data=request.data,
                             context={'caller_is_superadmin': access.has_role(request.user, 'superadmin')})
    s.is_valid(raise_exception=True)
    try:
        roles = staff_service.replace_roles(staff, s.validated_data['roles'], user=request.user)
    except staff_service.AccountError as e:
        return Response({'ok': False, 'error': {'code': 'no_login', 'message': str(e)}}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'staff_id': staff.pk, 'roles': roles})
