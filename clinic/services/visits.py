import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from clinic.models import Admission, DoctorVisit, Prescription, Staff

logger = logging.getLogger(__name__)

SHIFTS = ('morning', 'evening')


def _temperature(value) -> Optional[float]:
    if value in (None, ''):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError('temperature must be a number')


def normalize_shift(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    data = data or {}
    urine = (data.get('urine') or '').strip().lower()
    stool = (data.get('stool') or '').strip().lower()
    return {
        'temperature': _temperature(data.get('temperature')),
        'urine': urine,
        'urineAmount': (data.get('urineAmount') or '') if urine == 'yes' else '',
        'stool': stool,
        'stoolAmount': (data.get('stoolAmount') or '') if stool == 'yes' else '',
        'medication': data.get('medication') or '',
    }


def build_vitals(day: date, morning=None, evening=None) -> Dict[str, Any]:
    return {
        'date': day.isoformat(),
        'morning': normalize_shift(morning),
        'evening': normalize_shift(evening),
    }


def visit_for_day(admission: Admission, day: date) -> Optional[DoctorVisit]:
    return (
        DoctorVisit.objects.filter(admission=admission, visit_date__date=day)
        .prefetch_related('prescriptions__medicine')
        .order_by('visit_date')
        .first()
    )


@transaction.atomic
def record_treatment(admission: Admission, *, day: date, doctor: Optional[Staff], morning=None, evening=None,
                     observations: str = '', diagnosis: Optional[str] = None,
                     prescriptions: Optional[List[Dict[str, Any]]] = None) -> Tuple[DoctorVisit, bool]:
    """Upsert the admission's treatment record for ``day``.

    Returns ``(visit, created)``.  When ``prescriptions`` is given it
    replaces the visit's prescriptions.
    """
    vitals = build_vitals(day, morning, evening)
    visit = visit_for_day(admission, day)
    created = visit is None
    if created:
        visit = DoctorVisit(
            admission=admission,
            visit_date=timezone.make_aware(datetime.combine(day, time(hour=9))),
        )
    if doctor is not None:
        visit.doctor = doctor
    elif visit.doctor_id is None:
        visit.doctor = admission.doctor
    visit.vitals = vitals
    visit.observations = observations or ''
    if diagnosis is not None:
        visit.diagnosis = diagnosis
    visit.save()

    if prescriptions is not None:
        visit.prescriptions.all().delete()
        Prescription.objects.bulk_create([Prescription(visit=visit, **p) for p in prescriptions])

    logger.info('treatment recorded admission=%s day=%s created=%s', admission.admission_number, day, created)
    return visit, created


def staff_for_user(user) -> Optional[Staff]:
    if not user or not getattr(user, 'pk', None):
        return None
    return Staff.objects.filter(user=user).select_related('staff_type').first()


def doctor_dashboard(doctor: Staff) -> Dict[str, Any]:
    today = timezone.localdate()
    admissions = list(
        Admission.objects.filter(doctor=doctor, status__in=Admission.OCCUPYING_STATUSES)
        .select_related('pet__owner', 'cage__room__building')
        .order_by('-admission_date')
    )
    treated_today = set(
        DoctorVisit.objects.filter(admission__in=admissions, visit_date__date=today)
        .values_list('admission_id', flat=True)
    )
    today_count = DoctorVisit.objects.filter(doctor=doctor, visit_date__date=today).count()
    return {
        'admissions': admissions,
        'treated_today': treated_today,
        'assigned_count': len(admissions),
        'today_treatments': today_count,
        'pending_visits': max(len(admissions) - today_count, 0),
    }


def treatment_history(pet) -> List[Admission]:
    visits = DoctorVisit.objects.select_related('doctor').prefetch_related(
        Prefetch('prescriptions', queryset=Prescription.objects.select_related('medicine'))
    ).order_by('-visit_date')
    return list(
        Admission.objects.filter(pet=pet)
        .select_related('doctor', 'cage__room__building')
        .prefetch_related(Prefetch('visits', queryset=visits))
        .order_by('-admission_date')
    )
