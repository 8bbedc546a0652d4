import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import RolePermission, UserRole
from clinic.services import access

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize('role', ['admin', 'superadmin'])
def test_admin_roles_pass_every_check_with_empty_grant_table(make_user, role):
    assert RolePermission.objects.count() == 0
    user = make_user('boss', role)
    for module in access.MODULES:
        assert access.can_view(user, module)
        assert access.can_add(user, module)
        assert access.can_edit(user, module)
        assert access.can_delete(user, module)


def test_user_without_roles_is_denied(make_user):
    user = make_user('nobody')
    assert not access.can_view(user, 'pets')
    assert all(perms == [] for perms in access.permission_matrix(user).values())


def test_grants_are_per_role_and_per_type(make_user):
    RolePermission.objects.create(role='receptionist', module='pets', permission='view')
    user = make_user('desk', 'receptionist')
    assert access.can_view(user, 'pets')
    assert not access.can_add(user, 'pets')
    assert not access.can_view(user, 'billing')
    matrix = access.permission_matrix(user)
    assert matrix['pets'] == ['view']
    assert matrix['billing'] == []


def test_unknown_module_fails_closed(make_user):
    user = make_user('desk', 'receptionist')
    assert not access.has_permission(user, 'no_such_module', 'view')


def test_set_user_roles_refreshes_cached_roles(make_user):
    user = make_user('desk', 'receptionist')
    assert access.get_user_roles(user) == {'receptionist'}
    access.set_user_roles(user, ['doctor', 'staff'])
    assert access.get_user_roles(user) == {'doctor', 'staff'}


def test_first_superadmin_is_granted_once(make_user):
    first = make_user('first')
    second = make_user('second')
    assert access.ensure_first_superadmin(first) is True
    assert access.ensure_first_superadmin(second) is False
    assert list(UserRole.objects.filter(role='superadmin').values_list('user_id', flat=True)) == [first.pk]


def test_endpoint_enforces_method_permission(make_user, client_for, pet):
    RolePermission.objects.create(role='receptionist', module='pets', permission='view')
    client = client_for(make_user('desk', 'receptionist'))

    assert client.get('/api/pets').status_code == 200
    r = client.post('/api/pets', {'owner_id': str(pet.owner_id), 'name': 'Kitty'}, format='json')
    assert r.status_code == 403
    assert r.data['ok'] is False


def test_anonymous_requests_are_rejected():
    r = APIClient().get('/api/pets')
    assert r.status_code == 401


def test_role_permission_toggle(api):
    r = api.post('/api/role-permissions', {'role': 'doctor', 'module': 'pets', 'permission': 'view', 'granted': True},
                 format='json')
    assert r.status_code == 200
    assert r.data['permissions']['pets'] == ['view']
    r = api.post('/api/role-permissions', {'role': 'doctor', 'module': 'pets', 'permission': 'view', 'granted': False},
                 format='json')
    assert r.data['permissions']['pets'] == []


def test_only_superadmin_may_grant_superadmin(make_user, client_for):
    from clinic.models import Staff
    target = make_user('vet')
    staff = Staff.objects.create(name='Dr. Vet', user=target)

    admin_client = client_for(make_user('admin2', 'admin'))
    r = admin_client.put(f'/api/staff/{staff.pk}/roles', {'roles': ['superadmin']}, format='json')
    assert r.status_code == 400

    super_client = client_for(make_user('root', 'superadmin'))
    r = super_client.put(f'/api/staff/{staff.pk}/roles', {'roles': ['superadmin', 'doctor']}, format='json')
    assert r.status_code == 200
    assert sorted(r.data['roles']) == ['doctor', 'superadmin']


def test_unknown_route_returns_json_404(api):
    r = api.get('/api/does-not-exist')
    assert r.status_code == 404
    assert r.json()['error']['code'] == 'not_found'


def test_healthz():
    r = APIClient().get(reverse('healthz'))
    assert r.status_code == 200
