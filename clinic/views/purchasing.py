"""
Purchase orders.

Totals are computed here from the line items, never taken from the
client.  ``POST /api/purchase-orders/<id>/receive`` adds every line's
quantity to medicine stock and marks the order received; a second
receive is refused with 409.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import PurchaseOrder
from ..permissions import module_permission
from ..serializers.inventory import PurchaseOrderWriteSerializer
from ..services import purchasing
from ..services.audit import log_action


def _serialize(po: PurchaseOrder) -> dict:
    return {
        'id': po.pk,
        'po_number': po.po_number,
        'vendor_name': po.vendor_name,
        'vendor_contact': po.vendor_contact,
        'order_date': po.order_date.isoformat(),
        'expected_delivery': po.expected_delivery.isoformat() if po.expected_delivery else None,
        'status': po.status,
        'total_amount': float(po.total_amount),
        'notes': po.notes,
        'received_at': po.received_at.isoformat() if po.received_at else None,
        'created_at': po.created_at.isoformat(),
        'items': [
            {
                'id': i.pk,
                'medicine_id': i.medicine_id,
                'medicine_name': i.medicine.name,
                'unit': i.medicine.unit,
                'quantity': i.quantity,
                'unit_price': float(i.unit_price),
                'total_price': float(i.total_price),
            }
            for i in po.items.all()
        ],
    }


def _po_qs():
    return PurchaseOrder.objects.prefetch_related('items__medicine')


@api_view(['GET', 'POST'])
@permission_classes([module_permission('purchase_orders')])
def purchase_orders_list(request):
    if request.method == 'GET':
        qs = _po_qs()
        if request.query_params.get('status'):
            qs = qs.filter(status=request.query_params['status'])
        return Response([_serialize(po) for po in qs])

    s = PurchaseOrderWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    items = data.pop('items')
    try:
        po = purchasing.create_purchase_order(items=items, user=request.user, **data)
    except ValueError as e:
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': str(e)}}, status=400)
    return Response(_serialize(_po_qs().get(pk=po.pk)), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('purchase_orders')])
def purchase_order_detail(request, pk):
    po = get_object_or_404(_po_qs(), pk=pk)
    if request.method == 'GET':
        return Response(_serialize(po))
    if request.method in ('PUT', 'PATCH'):
        s = PurchaseOrderWriteSerializer(data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = data.pop('items', None)
        try:
            po = purchasing.update_purchase_order(po, items=items, user=request.user, **data)
        except ValueError as e:
            return Response({'ok': False, 'error': {'code': 'invalid', 'message': str(e)}}, status=400)
        return Response(_serialize(_po_qs().get(pk=po.pk)))
    if po.status == 'received':
        return Response({'ok': False, 'error': {'code': 'po_closed', 'message': 'A received purchase order cannot be deleted'}},
                        status=409)
    po_id = po.pk
    po.delete()
    log_action(user=request.user, action='purchase_orders.delete', table_name='purchase_orders', record_id=po_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([module_permission('purchase_orders', 'edit')])
def purchase_order_receive(request, pk):
    get_object_or_404(PurchaseOrder, pk=pk)
    po = purchasing.receive_purchase_order(pk, user=request.user)
    return Response(_serialize(_po_qs().get(pk=po.pk)))
