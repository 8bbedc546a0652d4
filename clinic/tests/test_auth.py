import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import Staff, StaffType, User, UserRole

pytestmark = pytest.mark.django_db


def login(client, username, password='P@ssw0rd1'):
    return client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')


def test_login_returns_jwt_and_legacy_token(make_user, admin_user):
    make_user('u_jwt', 'receptionist')
    r = login(APIClient(), 'u_jwt')
    assert r.status_code == 200
    assert r.data['token'] and r.data['jwt_access'] and r.data['jwt_refresh']
    assert r.data['roles'] == ['receptionist']


def test_login_by_email(make_user):
    make_user('by_mail', 'staff')
    assert login(APIClient(), 'by_mail@example.com').status_code == 200


def test_wrong_password_is_rejected(make_user):
    make_user('u1', 'staff')
    r = login(APIClient(), 'u1', 'nope')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid_credentials'


def test_extra_role_field_does_not_escalate(make_user, admin_user):
    u = make_user('u2', 'staff')
    client = APIClient()
    r = client.post(reverse('login_view'), {'username': 'u2', 'password': 'P@ssw0rd1', 'role': 'superadmin'},
                    format='json')
    assert r.status_code == 200
    assert set(UserRole.objects.filter(user=u).values_list('role', flat=True)) == {'staff'}


def test_first_login_on_fresh_install_becomes_superadmin(make_user):
    make_user('founder')
    r = login(APIClient(), 'founder')
    assert r.status_code == 200
    assert r.data['roles'] == ['superadmin']
    assert r.data['is_admin'] is True


def test_token_authenticates_session_with_menu(make_user):
    from clinic.models import RolePermission
    make_user('admin0', 'admin')
    make_user('desk', 'receptionist')
    RolePermission.objects.create(role='receptionist', module='pets', permission='view')
    client = APIClient()
    token = login(client, 'desk').data['token']
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')

    r = client.get(reverse('session_view'))
    assert r.status_code == 200
    keys = [m['key'] for m in r.data['menu']]
    assert keys == ['dashboard', 'pets']
    assert r.data['permissions']['pets'] == ['view']


def test_admin_menu_includes_doctor_dashboard(admin_user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Token {login(client, 'admin1').data['token']}")
    keys = [m['key'] for m in client.get(reverse('session_view')).data['menu']]
    assert keys[:2] == ['dashboard', 'doctor_dashboard']
    assert 'billing' in keys


def test_jwt_bearer_is_accepted(admin_user):
    client = APIClient()
    access = login(client, 'admin1').data['jwt_access']
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    assert client.get('/api/dashboard').status_code == 200


def test_deactivated_staff_cannot_log_in(make_user):
    make_user('admin0', 'admin')
    user = make_user('gone', 'staff')
    Staff.objects.create(name='Gone', user=user, active=False)
    r = login(APIClient(), 'gone')
    assert r.status_code == 403


def test_signup_creates_account(db):
    r = APIClient().post(reverse('signup_view'),
                         {'email': 'New@Clinic.org', 'password': 'longenough', 'full_name': 'New Person'},
                         format='json')
    assert r.status_code == 201
    assert User.objects.filter(username='new@clinic.org').exists()


def test_logout_revokes_token(admin_user):
    client = APIClient()
    data = login(client, 'admin1').data
    client.credentials(HTTP_AUTHORIZATION=f"Token {data['token']}")
    r = client.post(reverse('logout_view'), {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1
    assert client.get(reverse('session_view')).status_code == 401


# ---------------------------------------------------------------------
# POST /api/staff/create-auth
# ---------------------------------------------------------------------
@pytest.fixture
def vet_staff(db):
    vet = StaffType.objects.create(name='Veterinarian', role_mapping='doctor')
    return Staff.objects.create(name='Dr. Iyer', staff_type=vet)


def _create_auth(client, staff, **overrides):
    body = {'staffId': str(staff.pk), 'email': 'iyer@clinic.org', 'password': 'Str0ngPass', 'fullName': 'Dr. Iyer'}
    body.update(overrides)
    return client.post(reverse('create_staff_auth'), body, format='json')


def test_create_auth_links_login_and_grants_mapped_role(api, vet_staff):
    r = _create_auth(api, vet_staff)
    assert r.status_code == 200
    assert r.data['success'] is True
    vet_staff.refresh_from_db()
    assert vet_staff.user_id == r.data['userId']
    assert set(UserRole.objects.filter(user_id=vet_staff.user_id).values_list('role', flat=True)) == {'doctor'}


def test_create_auth_is_admin_only(make_user, client_for, vet_staff):
    r = _create_auth(client_for(make_user('desk', 'receptionist')), vet_staff)
    assert r.status_code == 403
    assert r.data['success'] is False


@pytest.mark.parametrize('overrides', [
    {'password': 'short'},
    {'fullName': 'X'},
    {'email': 'not-an-email'},
    {'staffId': 'not-a-uuid'},
])
def test_create_auth_validates_input(api, vet_staff, overrides):
    r = _create_auth(api, vet_staff, **overrides)
    assert r.status_code == 400
    assert r.data['success'] is False


def test_create_auth_refuses_existing_email(api, vet_staff):
    User.objects.create_user(username='iyer@clinic.org', email='iyer@clinic.org')
    r = _create_auth(api, vet_staff)
    assert r.status_code == 400
    assert r.data['success'] is False
