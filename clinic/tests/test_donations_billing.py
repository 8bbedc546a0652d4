from datetime import date

import pytest
from django.utils import timezone

from clinic.models import Admission, Donation, PetOwner
from clinic.services import donations as donation_service

pytestmark = pytest.mark.django_db


def _donate(api, **overrides):
    body = {'donor_name': 'Meera Shah', 'phone': '9988776655', 'address': 'Park Street', 'amount': '1000'}
    body.update(overrides)
    return api.post('/api/donations', body, format='json')


def test_donation_merges_donor_and_adds_stock(api, medicine):
    r = _donate(api, stock_items=[{'medicine_id': str(medicine.pk), 'quantity': 20}])
    assert r.status_code == 201, r.data
    assert r.data['receipt_number'].startswith('DON-')
    assert r.data['receipt_url'].endswith('/receipt')
    assert r.data['warnings'] == []
    medicine.refresh_from_db()
    assert medicine.stock_quantity == 120
    assert PetOwner.objects.filter(phone='9988776655').count() == 1

    _donate(api, amount='250')
    assert PetOwner.objects.filter(phone='9988776655').count() == 1


@pytest.mark.parametrize('overrides', [
    {'phone': '12345'},
    {'amount': '0'},
    {'donor_name': ''},
])
def test_donation_validation(api, overrides):
    assert _donate(api, **overrides).status_code == 400
    assert Donation.objects.count() == 0


def test_receipt_is_a_pdf(api):
    donation_id = _donate(api).data['id']
    r = api.get(f'/api/donations/{donation_id}/receipt')
    assert r.status_code == 200
    assert r['Content-Type'] == 'application/pdf'
    assert r.content.startswith(b'%PDF')
    assert 'attachment; filename="receipt_DON-' in r['Content-Disposition']


def test_donors_are_grouped_by_phone_and_ranked(admin_user):
    donation_service.record_donation(donor_name='Meera', donor_phone='9988776655', amount='100',
                                     donation_date=date(2026, 1, 5), user=admin_user)
    donation_service.record_donation(donor_name='Meera Shah', donor_phone='9988776655', amount='400',
                                     donation_date=date(2026, 2, 1), user=admin_user)
    donation_service.record_donation(donor_name='Karan', donor_phone='9000000000', amount='300', user=admin_user)

    rows = donation_service.donors_summary()
    assert [r['donor_phone'] for r in rows] == ['9988776655', '9000000000']
    assert rows[0]['total_amount'] == 500
    assert rows[0]['donation_count'] == 2
    assert rows[0]['donor_name'] == 'Meera Shah'
    assert rows[0]['last_donation_date'] == date(2026, 2, 1)


def test_donors_endpoint(api, admin_user):
    donation_service.record_donation(donor_name='Karan', donor_phone='9000000000', amount='300', user=admin_user)
    r = api.get('/api/donors')
    assert r.status_code == 200
    assert r.data[0]['total_amount'] == 300.0


def test_bill_totals(api, pet):
    adm = Admission.objects.create(admission_number='ADM-B', pet=pet, admission_date=timezone.now())
    r = api.post('/api/bills', {
        'admission_id': str(adm.pk),
        'tax_amount': '18.00',
        'discount_amount': '10.00',
        'items': [
            {'description': 'Ward charges', 'quantity': 3, 'unit_price': '200.00'},
            {'description': 'X-ray', 'unit_price': '450.00'},
        ],
    }, format='json')
    assert r.status_code == 201, r.data
    assert r.data['invoice_number'].startswith('INV-')
    assert r.data['subtotal'] == 1050.0
    assert r.data['total_amount'] == 1058.0

    r = api.patch(f"/api/bills/{r.data['id']}", {'status': 'paid', 'paid_amount': '1058.00'}, format='json')
    assert r.status_code == 200
    assert r.data['status'] == 'paid'
    assert r.data['total_amount'] == 1058.0


def test_dashboard_summary(api, pet, cage_factory):
    cage_factory('C-1')
    cage_factory('C-2')
    r = api.get('/api/dashboard')
    assert r.status_code == 200
    assert r.data['active_pets'] == 1
    assert r.data['active_owners'] == 1
    assert r.data['cages'] == {'occupied': 0, 'total': 2}
    assert r.data['admissions_by_status']['admitted'] == 0
