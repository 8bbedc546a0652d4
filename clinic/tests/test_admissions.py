from unittest import mock

import pytest
from django.utils import timezone

from clinic.models import Admission, Donation, DoctorVisit, Pet, PetOwner, Staff, StaffType
from clinic.services import cages as cage_service

pytestmark = pytest.mark.django_db


def _intake(**overrides):
    payload = {
        'owner': {'name': 'Ravi Kumar', 'phone': '9123456780', 'address': 'Lake View'},
        'pet': {'name': 'Tommy', 'species': 'Dog', 'gender': 'male', 'age': 3},
        'reason': 'Hit by a vehicle',
        'antibiotics': {'day1': 'Ceftriaxone'},
    }
    payload.update(overrides)
    return payload


def test_intake_creates_owner_pet_and_admission(api, cage_factory):
    cage = cage_factory(capacity=2)
    r = api.post('/api/admissions', _intake(cage_id=str(cage.pk)), format='json')
    assert r.status_code == 201, r.data
    assert r.data['status'] == 'admitted'
    assert r.data['admission_number'].startswith('ADM-')
    assert r.data['cage']['id'] == cage.pk
    assert r.data['antibiotics_schedule'] == {'day1': 'Ceftriaxone', 'day2': None, 'day3': None, 'day5': None}
    assert r.data['donation'] is None
    assert r.data['warnings'] == []
    assert PetOwner.objects.get().phone == '9123456780'


def test_intake_reuses_owner_by_phone(api, owner):
    r = api.post('/api/admissions', _intake(owner={'name': 'Asha Rao', 'phone': owner.phone}), format='json')
    assert r.status_code == 201
    assert r.data['owner']['id'] == owner.pk
    assert PetOwner.objects.count() == 1


def test_unknown_owner_intake(api):
    r = api.post('/api/admissions', _intake(owner={}, unknown_owner=True), format='json')
    assert r.status_code == 201
    assert r.data['owner']['name'] == 'Unknown Owner'


def test_intake_requires_owner_details(api):
    r = api.post('/api/admissions', _intake(owner={'name': 'R', 'phone': ''}), format='json')
    assert r.status_code == 400
    assert Pet.objects.count() == 0


def test_full_cage_rolls_back_the_whole_intake(api, cage_factory, owner):
    cage = cage_factory(capacity=1)
    first = api.post('/api/admissions', _intake(cage_id=str(cage.pk)), format='json')
    assert first.status_code == 201

    second = api.post('/api/admissions', _intake(owner={'name': 'New Person', 'phone': '9000000001'},
                                                 cage_id=str(cage.pk)), format='json')
    assert second.status_code == 409
    assert Admission.objects.count() == 1
    assert not PetOwner.objects.filter(phone='9000000001').exists()


def test_payment_at_intake_records_donation(api):
    r = api.post('/api/admissions', _intake(payment_received='500.00'), format='json')
    assert r.status_code == 201
    donation = Donation.objects.get()
    assert r.data['donation']['receipt_number'] == donation.receipt_number
    assert donation.admission_id == r.data['id']
    assert donation.total_value == 500


def test_receipt_failure_is_only_a_warning(api):
    with mock.patch('clinic.services.donations.render_donation_receipt', side_effect=RuntimeError('no fonts')):
        r = api.post('/api/admissions', _intake(payment_received='250'), format='json')
    assert r.status_code == 201
    assert r.data['warnings'] == ['Receipt could not be generated']
    assert Donation.objects.count() == 1


def test_edit_keeps_antibiotics_unless_given(api):
    created = api.post('/api/admissions', _intake(), format='json').data
    r = api.patch(f"/api/admissions/{created['id']}", {'notes': 'Stable'}, format='json')
    assert r.status_code == 200
    assert r.data['notes'] == 'Stable'
    assert r.data['antibiotics_schedule']['day1'] == 'Ceftriaxone'


def test_discharge_frees_the_cage(api, cage_factory):
    cage = cage_factory(capacity=1)
    created = api.post('/api/admissions', _intake(cage_id=str(cage.pk)), format='json').data
    r = api.post(f"/api/admissions/{created['id']}/discharge", {'status': 'discharged'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'discharged'
    assert r.data['discharge_date'] is not None
    cage.refresh_from_db()
    assert cage.status == 'available'

    again = api.post(f"/api/admissions/{created['id']}/discharge", {}, format='json')
    assert again.status_code == 400


def test_closing_by_status_edit_stamps_discharge_date(api, cage_factory):
    cage = cage_factory(capacity=1)
    created = api.post('/api/admissions', _intake(cage_id=str(cage.pk)), format='json').data
    r = api.patch(f"/api/admissions/{created['id']}", {'status': 'deceased'}, format='json')
    assert r.status_code == 200
    assert r.data['discharge_date'] is not None
    cage.refresh_from_db()
    assert cage.status == 'available'


@pytest.mark.parametrize('send_cage', [True, False])
def test_reopening_into_a_full_cage_is_refused(api, cage_factory, send_cage):
    cage = cage_factory(capacity=1)
    first = api.post('/api/admissions', _intake(cage_id=str(cage.pk)), format='json').data
    api.post(f"/api/admissions/{first['id']}/discharge", {}, format='json')
    second = api.post('/api/admissions', _intake(owner={'name': 'Meena', 'phone': '9000000002'},
                                                 cage_id=str(cage.pk)), format='json')
    assert second.status_code == 201

    body = {'status': 'admitted'}
    if send_cage:
        body['cage_id'] = str(cage.pk)
    r = api.patch(f"/api/admissions/{first['id']}", body, format='json')
    assert r.status_code == 409
    assert r.data['error']['code'] == 'cage_full'
    assert Admission.objects.get(pk=first['id']).status == 'discharged'
    assert cage_service.current_pet_count(cage) == 1


def test_reopening_with_space_clears_discharge_date(api, cage_factory):
    cage = cage_factory(capacity=1)
    created = api.post('/api/admissions', _intake(cage_id=str(cage.pk)), format='json').data
    api.post(f"/api/admissions/{created['id']}/discharge", {}, format='json')
    r = api.patch(f"/api/admissions/{created['id']}", {'status': 'admitted'}, format='json')
    assert r.status_code == 200
    assert r.data['discharge_date'] is None
    assert cage_service.current_pet_count(cage) == 1
    cage.refresh_from_db()
    assert cage.status == 'occupied'


def test_edit_with_blank_phone_keeps_owner_phone(api):
    created = api.post('/api/admissions', _intake(), format='json').data
    r = api.patch(f"/api/admissions/{created['id']}", {'owner': {'phone': '', 'address': 'Hill Road'}},
                  format='json')
    assert r.status_code == 200
    owner = PetOwner.objects.get()
    assert owner.phone == '9123456780'
    assert owner.address == 'Hill Road'


@pytest.fixture
def doctor(make_user):
    user = make_user('drmehta', 'doctor', full_name='Dr. Mehta')
    vet = StaffType.objects.create(name='Veterinarian', role_mapping='doctor')
    return Staff.objects.create(name='Dr. Mehta', staff_type=vet, user=user)


def test_treatment_record_is_upserted_per_day(client_for, doctor, pet, medicine):
    from clinic.models import RolePermission
    for perm in ('view', 'add'):
        RolePermission.objects.create(role='doctor', module='doctor_visits', permission=perm)
    adm = Admission.objects.create(admission_number='ADM-X', pet=pet, admission_date=timezone.now(),
                                   status='admitted', doctor=doctor)
    client = client_for(doctor.user)
    url = f'/api/admissions/{adm.pk}/treatment-record'
    body = {
        'date': '2026-03-01',
        'morning': {'temperature': '101.5', 'urine': 'yes', 'urineAmount': 'normal', 'stool': 'no',
                    'stoolAmount': 'ignored'},
        'observations': 'Eating well',
        'prescriptions': [{'medicine_id': str(medicine.pk), 'dosage': '1 tab', 'frequency': 'BID'}],
    }

    r = client.post(url, body, format='json')
    assert r.status_code == 201, r.data
    assert r.data['vitals']['morning']['temperature'] == 101.5
    assert r.data['vitals']['morning']['stoolAmount'] == ''
    assert r.data['doctor_id'] == doctor.pk

    body['observations'] = 'Recovering'
    body['prescriptions'] = []
    r = client.post(url, body, format='json')
    assert r.status_code == 200
    assert r.data['observations'] == 'Recovering'
    assert r.data['prescriptions'] == []
    assert DoctorVisit.objects.filter(admission=adm).count() == 1

    r = client.get(url + '?date=2026-03-01')
    assert r.data['record']['observations'] == 'Recovering'
    assert client.get(url + '?date=2026-03-02').data['record'] is None


def test_doctor_dashboard_lists_own_admissions(client_for, doctor, pet):
    Admission.objects.create(admission_number='ADM-1', pet=pet, admission_date=timezone.now(), status='admitted',
                             doctor=doctor)
    r = client_for(doctor.user).get('/api/doctor/dashboard')
    assert r.status_code == 200
    assert r.data['stats']['assigned'] == 1
    assert r.data['stats']['pending_visits'] == 1
    assert r.data['admissions'][0]['treated_today'] is False


def test_doctor_dashboard_refuses_other_roles(make_user, client_for):
    r = client_for(make_user('desk', 'receptionist')).get('/api/doctor/dashboard')
    assert r.status_code == 403
