import pytest

from clinic.exceptions import PurchaseOrderClosed
from clinic.models import Medicine, PurchaseOrder
from clinic.services import purchasing

pytestmark = pytest.mark.django_db


@pytest.fixture
def syringes(db):
    return Medicine.objects.create(name='Syringe 5ml', unit='piece', unit_price='4.00', stock_quantity=3,
                                   reorder_level=20)


def _create_po(api, *lines):
    payload = {
        'vendor_name': 'PetPharma Distributors',
        'items': [{'medicine_id': str(m.pk), 'quantity': q, 'unit_price': p} for m, q, p in lines],
    }
    r = api.post('/api/purchase-orders', payload, format='json')
    assert r.status_code == 201, r.data
    return r.data


def test_create_po_computes_totals(api, medicine, syringes):
    po = _create_po(api, (medicine, 10, '2.50'), (syringes, 4, '3.75'))
    assert po['po_number'].startswith('PO-')
    assert po['status'] == 'draft'
    assert po['total_amount'] == 40.0
    assert sorted(i['total_price'] for i in po['items']) == [15.0, 25.0]


def test_po_requires_items(api):
    r = api.post('/api/purchase-orders', {'vendor_name': 'PetPharma', 'items': []}, format='json')
    assert r.status_code == 400


def test_receive_adds_exact_quantities_once(api, medicine, syringes):
    po = _create_po(api, (medicine, 10, '2.50'), (syringes, 7, '4.00'))

    r = api.post(f"/api/purchase-orders/{po['id']}/receive")
    assert r.status_code == 200
    assert r.data['status'] == 'received'
    assert r.data['received_at'] is not None

    medicine.refresh_from_db()
    syringes.refresh_from_db()
    assert medicine.stock_quantity == 110
    assert syringes.stock_quantity == 10

    r = api.post(f"/api/purchase-orders/{po['id']}/receive")
    assert r.status_code == 409
    assert r.data['error']['code'] == 'po_closed'
    medicine.refresh_from_db()
    assert medicine.stock_quantity == 110


def test_received_po_cannot_be_edited_or_deleted(api, medicine, admin_user):
    po = _create_po(api, (medicine, 1, '2.50'))
    purchasing.receive_purchase_order(po['id'], user=admin_user)

    r = api.patch(f"/api/purchase-orders/{po['id']}", {'notes': 'late change'}, format='json')
    assert r.status_code == 409
    assert api.delete(f"/api/purchase-orders/{po['id']}").status_code == 409


def test_cancelled_po_cannot_be_received(medicine, admin_user):
    po = purchasing.create_purchase_order(
        items=[{'medicine': medicine, 'quantity': 5, 'unit_price': '1.00'}], user=admin_user, vendor_name='Vendor',
    )
    PurchaseOrder.objects.filter(pk=po.pk).update(status='cancelled')
    with pytest.raises(PurchaseOrderClosed):
        purchasing.receive_purchase_order(po.pk, user=admin_user)
    medicine.refresh_from_db()
    assert medicine.stock_quantity == 100


def test_po_status_received_is_not_settable_directly(api, medicine):
    r = api.post('/api/purchase-orders', {
        'vendor_name': 'PetPharma', 'status': 'received',
        'items': [{'medicine_id': str(medicine.pk), 'quantity': 1, 'unit_price': '1.00'}],
    }, format='json')
    assert r.status_code == 400


def test_low_stock_flagged_in_medicine_and_inventory_views(api, medicine, syringes):
    Medicine.objects.create(name='Empty Vial', unit='vial', stock_quantity=0, reorder_level=5)

    by_name = {m['name']: m for m in api.get('/api/medicines').data}
    assert by_name['Syringe 5ml']['is_low_stock'] is True
    assert by_name['Syringe 5ml']['stock_status'] == 'low_stock'
    assert by_name['Amoxicillin']['is_low_stock'] is False
    assert by_name['Empty Vial']['stock_status'] == 'out_of_stock'

    low = {m['name'] for m in api.get('/api/medicines?low_stock=1').data}
    assert low == {'Syringe 5ml', 'Empty Vial'}

    inv = api.get('/api/inventory').data
    rows = {r['name']: r for r in inv['items']}
    assert rows['Syringe 5ml']['needs_reorder'] is True
    assert rows['Amoxicillin']['needs_reorder'] is False
    assert inv['summary']['low_stock'] == 1
    assert inv['summary']['out_of_stock'] == 1


def test_stock_exactly_at_reorder_level_is_low(medicine):
    medicine.stock_quantity = medicine.reorder_level
    assert medicine.is_low_stock
    assert medicine.stock_status == 'low_stock'
