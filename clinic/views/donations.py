from __future__ import annotations

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Donation
from ..permissions import module_permission
from ..serializers.inventory import DonationCreateSerializer
from ..services import donations as donation_service
from ..services.receipts import receipt_filename


def _serialize(d: Donation) -> dict:
    return {
        'id': d.pk,
        'receipt_number': d.receipt_number,
        'donor_id': d.donor_id,
        'donor_name': d.donor_name,
        'donor_phone': d.donor_phone,
        'donor_email': d.donor_email,
        'donor_address': d.donor_address,
        'donation_date': d.donation_date.isoformat(),
        'total_value': float(d.total_value),
        'notes': d.notes,
        'admission_id': d.admission_id,
        'stock_items': [
            {'medicine_id': s.medicine_id, 'medicine_name': s.medicine.name, 'quantity': s.quantity,
             'unit_value': float(s.unit_value) if s.unit_value is not None else None,
             'expiry_date': s.expiry_date.isoformat() if s.expiry_date else None}
            for s in d.stock_items.all()
        ],
        'receipt_url': f'/api/donations/{d.pk}/receipt',
    }


@api_view(['GET', 'POST'])
@permission_classes([module_permission('donations')])
def donations_list(request):
    if request.method == 'GET':
        qs = Donation.objects.prefetch_related('stock_items__medicine')
        if request.query_params.get('phone'):
            qs = qs.filter(donor_phone=request.query_params['phone'])
        return Response([_serialize(d) for d in qs])

    s = DonationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    donation = donation_service.record_donation(
        donor_name=v['donor_name'],
        donor_phone=v['phone'],
        donor_address=v['address'],
        donor_email=v.get('email', ''),
        amount=v['amount'],
        donation_date=v.get('donation_date'),
        notes=v.get('notes', ''),
        admission=v.get('admission'),
        stock_items=v.get('stock_items'),
        user=request.user,
    )
    warnings = []
    if donation_service.try_render_receipt(donation) is None:
        warnings.append('Receipt could not be generated')
    payload = _serialize(Donation.objects.prefetch_related('stock_items__medicine').get(pk=donation.pk))
    payload['warnings'] = warnings
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([module_permission('donations', 'view')])
def donation_detail(request, pk):
    donation = get_object_or_404(Donation.objects.prefetch_related('stock_items__medicine'), pk=pk)
    return Response(_serialize(donation))


@api_view(['GET'])
@permission_classes([module_permission('donations', 'view')])
def donation_receipt(request, pk):
    """Stream the PDF receipt."""
    donation = get_object_or_404(Donation.objects.select_related('admission'), pk=pk)
    pdf = donation_service.try_render_receipt(donation)
    if pdf is None:
        return Response({'ok': False, 'error': {'code': 'receipt_failed', 'message': 'Receipt could not be generated'}},
                        status=500)
    resp = HttpResponse(pdf, content_type='application/pdf')
    resp['Content-Disposition'] = f'attachment; filename="{receipt_filename(donation)}"'
    return resp


@api_view(['GET'])
@permission_classes([module_permission('donations', 'view')])
def donors_list(request):
    """Donors ranked by total donated."""
    return Response([
        {
            'donor_name': row['donor_name'],
            'donor_phone': row['donor_phone'],
            'total_amount': float(row['total_amount']),
            'donation_count': row['donation_count'],
            'last_donation_date': row['last_donation_date'].isoformat() if row['last_donation_date'] else None,
        }
        for row in donation_service.donors_summary()
    ])
