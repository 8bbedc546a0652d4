"""
Dashboards.

The general dashboard is open to every signed-in user.  The doctor
dashboard lists the caller's own active admissions; admins may look at
another doctor's board with ``?doctor_id=``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Staff
from ..permissions import IsDoctorOrAdmin
from ..services import access
from ..services.dashboard import summary
from ..services.visits import doctor_dashboard, staff_for_user


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_view(request):
    return Response(summary())


@api_view(['GET'])
@permission_classes([IsDoctorOrAdmin])
def doctor_dashboard_view(request):
    doctor_id = request.query_params.get('doctor_id')
    if doctor_id and access.is_admin(request.user):
        doctor = Staff.objects.select_related('staff_type').filter(pk=doctor_id).first()
    else:
        doctor = staff_for_user(request.user)
    if doctor is None:
        return Response({'ok': False, 'error': {'code': 'no_staff_profile',
                                                'message': 'No staff record is linked to this doctor'}},
                        status=404)

    board = doctor_dashboard(doctor)
    return Response({
        'doctor': {'id': doctor.pk, 'name': doctor.name, 'specialization': doctor.specialization},
        'stats': {
            'assigned': board['assigned_count'],
            'today_treatments': board['today_treatments'],
            'pending_visits': board['pending_visits'],
        },
        'admissions': [
            {
                'id': a.pk,
                'admission_number': a.admission_number,
                'status': a.status,
                'admission_date': a.admission_date.isoformat(),
                'pet': {'id': a.pet.pk, 'name': a.pet.name, 'species': a.pet.species},
                'owner': {'name': a.pet.owner.name, 'phone': a.pet.owner.phone},
                'cage': a.cage.cage_number if a.cage else None,
                'treated_today': a.pk in board['treated_today'],
            }
            for a in board['admissions']
        ],
    })
