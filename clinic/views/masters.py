"""Pet types, staff types, treatments and medicines."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Medicine, PetType, StaffType, Treatment
from ..permissions import module_permission
from ..serializers.masters import MedicineSerializer, PetTypeSerializer, StaffTypeSerializer, TreatmentSerializer
from ..services.purchasing import low_stock_medicines
from .common import list_or_create, retrieve_update_destroy, truthy


@api_view(['GET', 'POST'])
@permission_classes([module_permission('pet_types')])
def pet_types_list(request):
    return list_or_create(request, PetType.objects.all(), PetTypeSerializer, table='pet_types',
                          search_fields=('name',))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('pet_types')])
def pet_type_detail(request, pk):
    return retrieve_update_destroy(request, PetType.objects.all(), pk, PetTypeSerializer, table='pet_types')


@api_view(['GET', 'POST'])
@permission_classes([module_permission('staff_types')])
def staff_types_list(request):
    return list_or_create(request, StaffType.objects.all(), StaffTypeSerializer, table='staff_types',
                          search_fields=('name',))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('staff_types')])
def staff_type_detail(request, pk):
    return retrieve_update_destroy(request, StaffType.objects.all(), pk, StaffTypeSerializer, table='staff_types')


@api_view(['GET', 'POST'])
@permission_classes([module_permission('treatments')])
def treatments_list(request):
    return list_or_create(request, Treatment.objects.all(), TreatmentSerializer, table='treatments',
                          search_fields=('name',))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('treatments')])
def treatment_detail(request, pk):
    return retrieve_update_destroy(request, Treatment.objects.all(), pk, TreatmentSerializer, table='treatments')


@api_view(['GET', 'POST'])
@permission_classes([module_permission('medicines')])
def medicines_list(request):
    qs = Medicine.objects.all()
    if truthy(request.query_params.get('low_stock')):
        qs = low_stock_medicines(qs)
    if request.query_params.get('category'):
        qs = qs.filter(category=request.query_params['category'])
    return list_or_create(request, qs, MedicineSerializer, table='medicines',
                          search_fields=('name', 'generic_name', 'manufacturer'))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('medicines')])
def medicine_detail(request, pk):
    return retrieve_update_destroy(request, Medicine.objects.all(), pk, MedicineSerializer, table='medicines')


@api_view(['GET'])
@permission_classes([module_permission('inventory', 'view')])
def inventory_view(request):
    """Active medicines with stock status and the reorder flag."""
    qs = Medicine.objects.filter(active=True).order_by('name')
    status_filter = request.query_params.get('status')
    rows = []
    for m in qs:
        if status_filter and m.stock_status != status_filter:
            continue
        rows.append({
            'id': m.pk,
            'name': m.name,
            'category': m.category,
            'unit': m.unit,
            'unit_price': float(m.unit_price),
            'stock_quantity': m.stock_quantity,
            'reorder_level': m.reorder_level,
            'stock_value': float(m.unit_price * m.stock_quantity),
            'stock_status': m.stock_status,
            'needs_reorder': m.is_low_stock,
            'expiry_date': m.expiry_date.isoformat() if m.expiry_date else None,
        })
    summary = {
        'total_items': len(rows),
        'low_stock': sum(1 for r in rows if r['stock_status'] == 'low_stock'),
        'out_of_stock': sum(1 for r in rows if r['stock_status'] == 'out_of_stock'),
        'total_value': round(sum(r['stock_value'] for r in rows), 2),
    }
    return Response({'items': rows, 'summary': summary})
