import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.models import Building, Cage, Medicine, Pet, PetOwner, Room, User, UserRole


@pytest.fixture(autouse=True)
def _clear_cache():
    # role sets and throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    def _make(username, *roles, password='P@ssw0rd1', **extra):
        user = User.objects.create_user(username=username, password=password, email=f'{username}@example.com', **extra)
        for role in roles:
            UserRole.objects.create(user=user, role=role)
        return user
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user('admin1', 'admin')


@pytest.fixture
def api(admin_user):
    client = APIClient()
    client.force_authenticate(admin_user)
    return client


@pytest.fixture
def client_for():
    def _client(user):
        c = APIClient()
        c.force_authenticate(user)
        return c
    return _client


@pytest.fixture
def room(db):
    building = Building.objects.create(name='Main Block')
    return Room.objects.create(building=building, name='Ward A', room_number='A1')


@pytest.fixture
def cage_factory(room):
    def _make(number='C-1', capacity=1, **extra):
        return Cage.objects.create(room=room, cage_number=number, max_pet_count=capacity, **extra)
    return _make


@pytest.fixture
def owner(db):
    return PetOwner.objects.create(name='Asha Rao', phone='9876543210', address='12 MG Road')


@pytest.fixture
def pet(owner):
    return Pet.objects.create(owner=owner, name='Bruno', species='Dog')


@pytest.fixture
def medicine(db):
    return Medicine.objects.create(name='Amoxicillin', unit='tablet', unit_price='2.50', stock_quantity=100,
                                   reorder_level=10)
