"""
Admission endpoints.

``POST /api/admissions`` takes the whole intake form (owner, pet and
admission fields) and saves it atomically.  Receipt rendering for a
payment collected at intake runs after commit; if it fails the response
still succeeds and carries a warning.
"""
from __future__ import annotations

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Admission
from ..permissions import module_permission
from ..serializers.admissions import (
    AdmissionWriteSerializer, AssignCageSerializer, DischargeSerializer, TreatmentRecordSerializer,
)
from ..services import admissions as admission_service
from ..services import cages as cage_service
from ..services.audit import log_action
from ..services.visits import record_treatment, staff_for_user, visit_for_day


def _serialize(a: Admission) -> dict:
    pet = a.pet
    owner = pet.owner
    return {
        'id': a.pk,
        'admission_number': a.admission_number,
        'status': a.status,
        'admission_date': a.admission_date.isoformat(),
        'discharge_date': a.discharge_date.isoformat() if a.discharge_date else None,
        'pet': {
            'id': pet.pk, 'name': pet.name, 'species': pet.species, 'breed': pet.breed, 'gender': pet.gender,
            'age': pet.age, 'weight': float(pet.weight) if pet.weight is not None else None, 'color': pet.color,
            'microchip_id': pet.microchip_id,
        },
        'owner': {'id': owner.pk, 'name': owner.name, 'phone': owner.phone, 'address': owner.address,
                  'email': owner.email},
        'cage': {
            'id': a.cage.pk, 'cage_number': a.cage.cage_number, 'name': a.cage.name,
        } if a.cage else None,
        'doctor': {'id': a.doctor.pk, 'name': a.doctor.name} if a.doctor else None,
        'brought_by': {'id': a.brought_by.pk, 'name': a.brought_by.name} if a.brought_by else None,
        'reason': a.reason,
        'diagnosis': a.diagnosis,
        'symptoms': a.symptoms,
        'notes': a.notes,
        'xray_date': a.xray_date.isoformat() if a.xray_date else None,
        'operation_date': a.operation_date.isoformat() if a.operation_date else None,
        'antibiotics_schedule': a.antibiotics_schedule,
        'blood_test_report': a.blood_test_report,
        'payment_received': float(a.payment_received),
        'created_at': a.created_at.isoformat(),
    }


def _admission_qs():
    return Admission.objects.select_related('pet__owner', 'cage', 'doctor', 'brought_by')


def _split(validated: dict):
    owner = validated.pop('owner', None) or {}
    pet = validated.pop('pet', None) or {}
    unknown = validated.pop('unknown_owner', False)
    return owner, pet, unknown, validated


@api_view(['GET', 'POST'])
@permission_classes([module_permission('admissions')])
def admissions_list(request):
    if request.method == 'GET':
        qs = _admission_qs()
        st = request.query_params.get('status')
        if st:
            qs = qs.filter(status__in=st.split(','))
        if request.query_params.get('pet_id'):
            qs = qs.filter(pet_id=request.query_params['pet_id'])
        if request.query_params.get('doctor_id'):
            qs = qs.filter(doctor_id=request.query_params['doctor_id'])
        return Response([_serialize(a) for a in qs.order_by('-admission_date')])

    s = AdmissionWriteSerializer(data=request.data, context={'instance': None})
    s.is_valid(raise_exception=True)
    owner, pet, unknown, fields = _split(dict(s.validated_data))
    admission, donation, warnings = admission_service.save_admission(
        owner=owner, pet=pet, admission=fields, unknown_owner=unknown, user=request.user,
    )
    payload = _serialize(_admission_qs().get(pk=admission.pk))
    payload['donation'] = {
        'id': donation.pk, 'receipt_number': donation.receipt_number,
        'receipt_url': f'/api/donations/{donation.pk}/receipt',
    } if donation else None
    payload['warnings'] = warnings
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([module_permission('admissions')])
def admission_detail(request, pk):
    admission = get_object_or_404(_admission_qs(), pk=pk)
    if request.method == 'GET':
        return Response(_serialize(admission))
    if request.method in ('PUT', 'PATCH'):
        s = AdmissionWriteSerializer(data=request.data, context={'instance': admission}, partial=True)
        s.is_valid(raise_exception=True)
        owner, pet, unknown, fields = _split(dict(s.validated_data))
        admission, _, warnings = admission_service.save_admission(
            owner=owner, pet=pet, admission=fields, unknown_owner=unknown, instance=admission, user=request.user,
        )
        payload = _serialize(_admission_qs().get(pk=admission.pk))
        payload['warnings'] = warnings
        return Response(payload)
    cage_id = admission.cage_id
    admission_id = admission.pk
    with transaction.atomic():
        admission.delete()
        cage_service.release_cage(cage_id)
    log_action(user=request.user, action='admissions.delete', table_name='admissions', record_id=admission_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([module_permission('admissions', 'edit')])
def admission_assign_cage(request, pk):
    admission = get_object_or_404(Admission, pk=pk)
    s = AssignCageSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if admission.status not in Admission.OCCUPYING_STATUSES:
        return Response({'ok': False, 'error': {'code': 'closed', 'message': 'Admission is already closed'}},
                        status=400)
    cage_service.assign_cage(admission, s.validated_data['cage_id'])
    log_action(user=request.user, action='admissions.assign_cage', table_name='admissions', record_id=admission.pk,
               new_data={'cage_id': str(admission.cage_id)})
    return Response(_serialize(_admission_qs().get(pk=admission.pk)))


@api_view(['POST'])
@permission_classes([module_permission('admissions', 'edit')])
def admission_discharge(request, pk):
    admission = get_object_or_404(Admission, pk=pk)
    s = DischargeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        admission_service.discharge(admission, status=s.validated_data['status'],
                                    discharge_date=s.validated_data.get('discharge_date'), user=request.user)
    except ValueError as e:
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': str(e)}}, status=400)
    return Response(_serialize(_admission_qs().get(pk=admission.pk)))


def _serialize_visit(v) -> dict:
    return {
        'id': v.pk,
        'admission_id': v.admission_id,
        'doctor_id': v.doctor_id,
        'visit_date': v.visit_date.isoformat(),
        'vitals': v.vitals,
        'observations': v.observations,
        'diagnosis': v.diagnosis,
        'prescriptions': [
            {
                'id': p.pk, 'medicine_id': p.medicine_id, 'medicine_name': p.medicine.name, 'unit': p.medicine.unit,
                'dosage': p.dosage, 'frequency': p.frequency, 'duration': p.duration, 'quantity': p.quantity,
                'instructions': p.instructions,
            }
            for p in v.prescriptions.all()
        ],
    }


@api_view(['GET', 'POST'])
@permission_classes([module_permission('doctor_visits')])
def treatment_record(request, pk):
    """Daily AM/PM treatment record: one per admission per day."""
    admission = get_object_or_404(Admission.objects.select_related('doctor'), pk=pk)
    if request.method == 'GET':
        day = parse_date(request.query_params.get('date') or '') or timezone.localdate()
        visit = visit_for_day(admission, day)
        return Response({'date': day.isoformat(), 'record': _serialize_visit(visit) if visit else None})

    s = TreatmentRecordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    try:
        visit, created = record_treatment(
            admission,
            day=v['date'],
            doctor=staff_for_user(request.user),
            morning=v.get('morning'),
            evening=v.get('evening'),
            observations=v.get('observations', ''),
            diagnosis=v.get('diagnosis'),
            prescriptions=v.get('prescriptions'),
        )
    except ValueError as e:
        return Response({'ok': False, 'error': {'code': 'invalid', 'message': str(e)}}, status=400)
    log_action(user=request.user, action='doctor_visits.upsert', table_name='doctor_visits', record_id=visit.pk,
               new_data={'date': v['date'].isoformat(), 'created': created})
    visit = type(visit).objects.prefetch_related('prescriptions__medicine').get(pk=visit.pk)
    return Response(_serialize_visit(visit), status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)
