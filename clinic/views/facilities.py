"""
Buildings, rooms and cages.

Deleting a building that still has rooms, or a room that still has
cages, is refused with 409.  Cage listings carry the live occupancy
count from a single annotated query.
"""
from __future__ import annotations

from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Building, Cage, Room
from ..permissions import module_permission
from ..serializers.masters import BuildingSerializer, CageSerializer, RoomSerializer
from ..services import cages as cage_service
from .common import list_or_create, retrieve_update_destroy


@api_view(['GET', 'POST'])
@permission_classes([module_permission('buildings')])
def buildings_list(request):
    qs = Building.objects.annotate(room_count=Count('rooms'))
    return list_or_create(request, qs, BuildingSerializer, table='buildings', search_fields=('name',))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('buildings')])
def building_detail(request, pk):
    qs = Building.objects.annotate(room_count=Count('rooms'))
    return retrieve_update_destroy(request, qs, pk, BuildingSerializer, table='buildings')


@api_view(['GET', 'POST'])
@permission_classes([module_permission('rooms')])
def rooms_list(request):
    qs = Room.objects.select_related('building')
    building_id = request.query_params.get('building_id')
    if building_id:
        qs = qs.filter(building_id=building_id)
    return list_or_create(request, qs, RoomSerializer, table='rooms', search_fields=('name', 'room_number'))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('rooms')])
def room_detail(request, pk):
    return retrieve_update_destroy(request, Room.objects.select_related('building'), pk, RoomSerializer, table='rooms')


def _cage_qs():
    return cage_service.with_occupancy(Cage.objects.select_related('room__building'))


@api_view(['GET', 'POST'])
@permission_classes([module_permission('cages')])
def cages_list(request):
    qs = _cage_qs()
    room_id = request.query_params.get('room_id')
    if room_id:
        qs = qs.filter(room_id=room_id)
    if request.query_params.get('status'):
        qs = qs.filter(status=request.query_params['status'])
    return list_or_create(request, qs, CageSerializer, table='cages', search_fields=('cage_number', 'name'))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('cages')])
def cage_detail(request, pk):
    return retrieve_update_destroy(request, _cage_qs(), pk, CageSerializer, table='cages')


@api_view(['GET'])
@permission_classes([module_permission('cages', 'view')])
def available_cages(request):
    """Active cages with spare capacity, labelled with their location."""
    rows = []
    for cage in cage_service.available_cages():
        rows.append({
            'id': cage.pk,
            'cage_number': cage.cage_number,
            'name': cage.name,
            'size': cage.size,
            'status': cage.status,
            'room_name': cage.room.name,
            'building_name': cage.room.building.name,
            'current_count': cage.current_count,
            'max_pet_count': cage.max_pet_count,
            'label': f"{cage.room.building.name} / {cage.room.name} / {cage.cage_number} "
                     f"({cage_service.occupancy_label(cage)})",
        })
    return Response(rows)


@api_view(['GET'])
@permission_classes([module_permission('cages', 'view')])
def cage_occupancy(request, pk):
    cage = get_object_or_404(Cage, pk=pk)
    count = cage_service.current_pet_count(cage)
    return Response({
        'cage_id': cage.pk,
        'current_count': count,
        'max_pet_count': cage.max_pet_count,
        'has_space': count < cage.max_pet_count,
    })
