import pytest
from django.utils import timezone

from clinic.exceptions import CageFull, CageUnavailable
from clinic.models import Admission, Pet
from clinic.services import cages as cage_service

pytestmark = pytest.mark.django_db


def _admission(pet, number, status='admitted'):
    return Admission.objects.create(admission_number=number, pet=pet, admission_date=timezone.now(), status=status)


def test_assign_until_full_then_refuse(cage_factory, owner):
    cage = cage_factory('C-2', capacity=2)
    pets = [Pet.objects.create(owner=owner, name=f'Pet {i}') for i in range(3)]
    a1, a2, a3 = (_admission(p, f'ADM-{i}') for i, p in enumerate(pets))

    cage_service.assign_cage(a1, cage.pk)
    cage_service.assign_cage(a2, cage.pk)
    with pytest.raises(CageFull):
        cage_service.assign_cage(a3, cage.pk)

    a3.refresh_from_db()
    assert a3.cage_id is None
    assert cage_service.current_pet_count(cage) == 2
    cage.refresh_from_db()
    assert cage.status == 'occupied'


def test_reassigning_to_same_cage_does_not_double_count(cage_factory, pet):
    cage = cage_factory(capacity=1)
    adm = _admission(pet, 'ADM-1')
    cage_service.assign_cage(adm, cage.pk)
    cage_service.assign_cage(adm, cage.pk)
    assert cage_service.current_pet_count(cage) == 1


def test_discharged_admissions_free_capacity(cage_factory, owner):
    cage = cage_factory(capacity=1)
    first = _admission(Pet.objects.create(owner=owner, name='A'), 'ADM-1')
    cage_service.assign_cage(first, cage.pk)
    first.status = 'discharged'
    first.save()
    cage_service.release_cage(cage.pk)

    cage.refresh_from_db()
    assert cage.status == 'available'
    second = _admission(Pet.objects.create(owner=owner, name='B'), 'ADM-2')
    assert cage_service.assign_cage(second, cage.pk).pk == cage.pk


def test_maintenance_cage_is_not_assignable(cage_factory, pet):
    cage = cage_factory(status='maintenance')
    with pytest.raises(CageUnavailable):
        cage_service.assign_cage(_admission(pet, 'ADM-1'), cage.pk)


def test_available_cages_lists_only_cages_with_space(cage_factory, owner):
    full = cage_factory('C-FULL', capacity=1)
    roomy = cage_factory('C-ROOMY', capacity=3)
    cage_factory('C-MAINT', capacity=3, status='maintenance')
    cage_factory('C-OFF', capacity=3, active=False)
    cage_service.assign_cage(_admission(Pet.objects.create(owner=owner, name='A'), 'ADM-1'), full.pk)
    cage_service.assign_cage(_admission(Pet.objects.create(owner=owner, name='B'), 'ADM-2'), roomy.pk)

    available = list(cage_service.available_cages())
    assert [c.cage_number for c in available] == ['C-ROOMY']
    assert cage_service.occupancy_label(available[0]) == '1/3'


def test_assign_cage_endpoint_returns_409_when_full(api, cage_factory, owner):
    cage = cage_factory(capacity=1)
    first = _admission(Pet.objects.create(owner=owner, name='A'), 'ADM-1')
    second = _admission(Pet.objects.create(owner=owner, name='B'), 'ADM-2')

    r = api.post(f'/api/admissions/{first.pk}/assign-cage', {'cage_id': str(cage.pk)}, format='json')
    assert r.status_code == 200
    assert r.data['cage']['id'] == cage.pk

    r = api.post(f'/api/admissions/{second.pk}/assign-cage', {'cage_id': str(cage.pk)}, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'cage_full'


def test_cage_listing_carries_occupancy(api, cage_factory, pet):
    cage = cage_factory(capacity=2)
    cage_service.assign_cage(_admission(pet, 'ADM-1'), cage.pk)

    r = api.get('/api/cages')
    assert r.status_code == 200
    assert r.data[0]['current_count'] == 1

    r = api.get(f'/api/cages/{cage.pk}/occupancy')
    assert r.data == {'cage_id': cage.pk, 'current_count': 1, 'max_pet_count': 2, 'has_space': True}


def test_cage_capacity_must_be_positive(api, room):
    r = api.post('/api/cages', {'room_id': str(room.pk), 'cage_number': 'C-9', 'max_pet_count': 0}, format='json')
    assert r.status_code == 400


def test_building_with_rooms_cannot_be_deleted(api, room):
    r = api.delete(f'/api/buildings/{room.building_id}')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'protected'


def test_capacity_cannot_drop_below_occupancy(api, cage_factory, owner):
    cage = cage_factory(capacity=2)
    for i in range(2):
        cage_service.assign_cage(_admission(Pet.objects.create(owner=owner, name=f'Pet {i}'), f'ADM-{i}'), cage.pk)

    r = api.patch(f'/api/cages/{cage.pk}', {'max_pet_count': 1}, format='json')
    assert r.status_code == 400
    cage.refresh_from_db()
    assert cage.max_pet_count == 2

    r = api.patch(f'/api/cages/{cage.pk}', {'max_pet_count': 3}, format='json')
    assert r.status_code == 200
    assert r.data['max_pet_count'] == 3
