"""
Pet owners and pets.

Creating an owner whose phone matches an active owner updates that owner
instead of adding a duplicate.  Pets are soft-removed with a reason; the
default pet listing hides removed pets.
"""
from __future__ import annotations

from django.db import transaction
from django.db.models import Count, Prefetch, Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Admission, Pet, PetOwner
from ..permissions import module_permission
from ..serializers.owners import OwnerSerializer, PetSerializer, RemovePetSerializer
from ..services import pets as pet_service
from ..services.audit import log_action
from ..services.owners import merge_owner_by_phone
from ..services.visits import treatment_history
from .common import retrieve_update_destroy, truthy


def _owner_qs():
    return PetOwner.objects.annotate(pet_count=Count('pets'))


@api_view(['GET', 'POST'])
@permission_classes([module_permission('pet_owners')])
def owners_list(request):
    if request.method == 'GET':
        qs = _owner_qs()
        term = (request.query_params.get('q') or '').strip()
        if term:
            qs = qs.filter(Q(name__icontains=term) | Q(phone__icontains=term))
        if truthy(request.query_params.get('active')):
            qs = qs.filter(active=True)
        return Response(OwnerSerializer(qs.order_by('name'), many=True).data)

    s = OwnerSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        owner, created = merge_owner_by_phone(
            name=v['name'], phone=v['phone'], address=v.get('address', ''), email=v.get('email', ''),
            notes=v.get('notes'),
        )
        log_action(user=request.user, action='pet_owners.create' if created else 'pet_owners.merge',
                   table_name='pet_owners', record_id=owner.pk)
    data = OwnerSerializer(_owner_qs().get(pk=owner.pk)).data
    data['merged'] = not created
    return Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('pet_owners')])
def owner_detail(request, pk):
    return retrieve_update_destroy(request, _owner_qs(), pk, OwnerSerializer, table='pet_owners')


@api_view(['GET'])
@permission_classes([module_permission('pet_owners', 'view')])
def owner_admissions(request, pk):
    """The owner's pets, each with its admissions."""
    owner = get_object_or_404(PetOwner, pk=pk)
    pets = owner.pets.prefetch_related(
        Prefetch('admissions', queryset=Admission.objects.select_related('cage').order_by('-admission_date'))
    )
    return Response({
        'owner': OwnerSerializer(owner).data,
        'pets': [
            {
                **PetSerializer(p).data,
                'admissions': [
                    {
                        'id': a.pk,
                        'admission_number': a.admission_number,
                        'admission_date': a.admission_date.isoformat(),
                        'discharge_date': a.discharge_date.isoformat() if a.discharge_date else None,
                        'status': a.status,
                        'reason': a.reason,
                        'cage_number': a.cage.cage_number if a.cage else None,
                    }
                    for a in p.admissions.all()
                ],
            }
            for p in pets
        ],
    })


@api_view(['GET', 'POST'])
@permission_classes([module_permission('pets')])
def pets_list(request):
    if request.method == 'GET':
        if truthy(request.query_params.get('include_removed')):
            qs = Pet.objects.all()
        else:
            qs = pet_service.active_pets()
        qs = qs.select_related('owner')
        if request.query_params.get('owner_id'):
            qs = qs.filter(owner_id=request.query_params['owner_id'])
        term = (request.query_params.get('q') or '').strip()
        if term:
            qs = qs.filter(Q(name__icontains=term) | Q(microchip_id__icontains=term))
        return Response(PetSerializer(qs, many=True).data)

    s = PetSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        pet = pet_service.create_pet(**s.validated_data)
        log_action(user=request.user, action='pets.create', table_name='pets', record_id=pet.pk)
    return Response(PetSerializer(pet).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([module_permission('pets')])
def pet_detail(request, pk):
    return retrieve_update_destroy(request, Pet.objects.select_related('owner'), pk, PetSerializer, table='pets')


@api_view(['POST'])
@permission_classes([module_permission('pets', 'delete')])
def pet_remove(request, pk):
    pet = get_object_or_404(Pet, pk=pk)
    s = RemovePetSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        pet_service.remove_pet(pet, reason=s.validated_data['reason'],
                               removal_date=s.validated_data.get('removal_date'))
        log_action(user=request.user, action='pets.remove', table_name='pets', record_id=pet.pk,
                   new_data={'reason': pet.removal_reason})
    return Response(PetSerializer(pet).data)


@api_view(['GET'])
@permission_classes([module_permission('doctor_visits', 'view')])
def pet_history(request, pk):
    """Treatment history: admissions with their visits and prescriptions."""
    pet = get_object_or_404(Pet.objects.select_related('owner'), pk=pk)
    admissions = treatment_history(pet)
    return Response({
        'pet': PetSerializer(pet).data,
        'admissions': [
            {
                'id': a.pk,
                'admission_number': a.admission_number,
                'admission_date': a.admission_date.isoformat(),
                'discharge_date': a.discharge_date.isoformat() if a.discharge_date else None,
                'status': a.status,
                'reason': a.reason,
                'diagnosis': a.diagnosis,
                'doctor_name': a.doctor.name if a.doctor else None,
                'cage': {
                    'cage_number': a.cage.cage_number,
                    'room_name': a.cage.room.name,
                    'building_name': a.cage.room.building.name,
                } if a.cage else None,
                'visits': [
                    {
                        'id': v.pk,
                        'visit_date': v.visit_date.isoformat(),
                        'doctor_name': v.doctor.name if v.doctor else None,
                        'vitals': v.vitals,
                        'observations': v.observations,
                        'diagnosis': v.diagnosis,
                        'prescriptions': [
                            {
                                'medicine_name': p.medicine.name,
                                'unit': p.medicine.unit,
                                'dosage': p.dosage,
                                'frequency': p.frequency,
                                'duration': p.duration,
                                'quantity': p.quantity,
                                'instructions': p.instructions,
                            }
                            for p in v.prescriptions.all()
                        ],
                    }
                    for v in a.visits.all()
                ],
            }
            for a in admissions
        ],
    })
