import pytest

from clinic.models import Pet, PetOwner
from clinic.services import dashboard, pets as pet_service

pytestmark = pytest.mark.django_db


def test_new_owner_with_existing_phone_updates_that_owner(api, owner):
    r = api.post('/api/owners', {'name': 'Asha R. Rao', 'phone': owner.phone, 'address': 'New address'},
                 format='json')
    assert r.status_code == 200
    assert r.data['merged'] is True
    assert r.data['id'] == str(owner.pk)
    assert PetOwner.objects.count() == 1
    owner.refresh_from_db()
    assert owner.name == 'Asha R. Rao'
    assert owner.address == 'New address'


def test_inactive_owner_phone_does_not_merge(api, owner):
    owner.active = False
    owner.save()
    r = api.post('/api/owners', {'name': 'Someone Else', 'phone': owner.phone}, format='json')
    assert r.status_code == 201
    assert PetOwner.objects.count() == 2


def test_owner_name_is_validated(api):
    r = api.post('/api/owners', {'name': 'A', 'phone': '123'}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False


def test_pet_created_without_name_is_unknown_and_tagged(api, owner):
    r = api.post('/api/pets', {'owner_id': str(owner.pk), 'species': 'Cat'}, format='json')
    assert r.status_code == 201
    assert r.data['name'] == 'Unknown'
    assert r.data['microchip_id'].startswith('TAG-')


def test_removed_pets_leave_default_list_but_cured_still_count(api, owner):
    kept = Pet.objects.create(owner=owner, name='Kept')
    cured = Pet.objects.create(owner=owner, name='Cured')
    expired = Pet.objects.create(owner=owner, name='Gone')

    assert api.post(f'/api/pets/{cured.pk}/remove', {'reason': 'Cured'}, format='json').status_code == 200
    assert api.post(f'/api/pets/{expired.pk}/remove', {'reason': 'Expired'}, format='json').status_code == 200

    names = {p['name'] for p in api.get('/api/pets').data}
    assert names == {'Kept'}
    assert len(api.get('/api/pets?include_removed=1').data) == 3

    assert set(pet_service.dashboard_active_pets()) == {kept, cured}
    assert dashboard.summary()['active_pets'] == 2


def test_remove_pet_requires_reason(api, pet):
    r = api.post(f'/api/pets/{pet.pk}/remove', {}, format='json')
    assert r.status_code == 400
    pet.refresh_from_db()
    assert pet.removed is False


def test_pets_cannot_be_hard_deleted(api, pet):
    assert api.delete(f'/api/pets/{pet.pk}').status_code == 405


def test_owner_admissions_view_groups_by_pet(api, owner, pet):
    r = api.get(f'/api/owners/{owner.pk}/admissions')
    assert r.status_code == 200
    assert r.data['owner']['phone'] == owner.phone
    assert [p['name'] for p in r.data['pets']] == ['Bruno']
    assert r.data['pets'][0]['admissions'] == []
