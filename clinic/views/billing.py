from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Bill
from ..permissions import module_permission
from ..serializers.inventory import BillWriteSerializer
from ..services import billing
from ..services.audit import log_action


def _serialize(b: Bill) -> dict:
    return {
        'id': b.pk,
        'invoice_number': b.invoice_number,
        'admission_id': b.admission_id,
        'admission_number': b.admission.admission_number,
        'pet_name': b.admission.pet.name,
        'invoice_date': b.invoice_date.isoformat(),
        'due_date': b.due_date.isoformat() if b.due_date else None,
        'status': b.status,
        'subtotal': float(b.subtotal),
        'tax_amount': float(b.tax_amount),
        'discount_amount': float(b.discount_amount),
        'total_amount': float(b.total_amount),
        'paid_amount': float(b.paid_amount),
        'notes': b.notes,
        'items': [
            {'id': i.pk, 'description': i.description, 'quantity': i.quantity,
             'unit_price': float(i.unit_price), 'total_price': float(i.total_price)}
            for i in b.items.all()
        ],
    }


def _bill_qs():
    return Bill.objects.select_related('admission__pet').prefetch_related('items')


@api_view(['GET', 'POST'])
@permission_classes([module_permission('billing')])
def bills_list(request):
    if request.method == 'GET':
        qs = _bill_qs()
        if request.query_params.get('status'):
            qs = qs.filter(status=request.query_params['status'])
        if request.query_params.get('admission_id'):
            qs = qs.filter(admission_id=request.query_params['admission_id'])
        return Response([_serialize(b) for b in qs])

    s = BillWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    items = data.pop('items', [])
    bill = billing.create_bill(items=items, user=request.user, **data)
    return Response(_serialize(_bill_qs().get(pk=bill.pk)), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('billing')])
def bill_detail(request, pk):
    bill = get_object_or_404(_bill_qs(), pk=pk)
    if request.method == 'GET':
        return Response(_serialize(bill))
    if request.method in ('PUT', 'PATCH'):
        s = BillWriteSerializer(data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)
        items = data.pop('items', None)
        bill = billing.update_bill(bill, items=items, user=request.user, **data)
        return Response(_serialize(_bill_qs().get(pk=bill.pk)))
    bill_id = bill.pk
    bill.delete()
    log_action(user=request.user, action='bill.delete', table_name='billing', record_id=bill_id)
    return Response(status=status.HTTP_204_NO_CONTENT)
