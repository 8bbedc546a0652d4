"""
Cage occupancy and assignment.

Occupancy is the number of admissions in an occupying status (admitted or
pending) that reference the cage.  Assignment takes a row lock on the cage
and recounts inside the transaction so two concurrent requests for the
last slot cannot both succeed.
"""
import logging
from typing import Optional

from django.db import transaction
from django.db.models import Count, F, Q, QuerySet
from rest_framework.exceptions import ValidationError

from clinic.exceptions import CageFull, CageUnavailable
from clinic.models import Admission, Cage

logger = logging.getLogger(__name__)

UNASSIGNABLE_STATUSES = ('maintenance', 'reserved')


def current_pet_count(cage, exclude_admission=None) -> int:
    qs = Admission.objects.filter(cage=cage, status__in=Admission.OCCUPYING_STATUSES)
    if exclude_admission is not None:
        qs = qs.exclude(pk=exclude_admission.pk)
    return qs.count()


def with_occupancy(qs: Optional[QuerySet] = None) -> QuerySet:
    """Annotate ``current_count`` on each cage in a single query."""
    qs = Cage.objects.all() if qs is None else qs
    return qs.annotate(
        current_count=Count('admissions', filter=Q(admissions__status__in=Admission.OCCUPYING_STATUSES))
    )


def available_cages() -> QuerySet:
    return (
        with_occupancy(Cage.objects.filter(active=True).exclude(status__in=UNASSIGNABLE_STATUSES))
        .filter(current_count__lt=F('max_pet_count'))
        .select_related('room__building')
        .order_by('cage_number')
    )


def occupancy_label(cage) -> str:
    count = getattr(cage, 'current_count', None)
    if count is None:
        count = current_pet_count(cage)
    return f"{count}/{cage.max_pet_count}"


@transaction.atomic
def assign_cage(admission: Admission, cage_id, reopening: bool = False) -> Cage:
    """Put ``admission`` into the cage, enforcing capacity under a row lock.

    ``reopening`` marks an admission coming back from a closed status; it is
    counted as a new occupant even when it still references this cage.
    """
    cage = Cage.objects.select_for_update().filter(pk=cage_id).first()
    if cage is None:
        raise ValidationError({'cage_id': 'Unknown cage.'})
    if not cage.active or cage.status in UNASSIGNABLE_STATUSES:
        raise CageUnavailable(f"Cage {cage.cage_number} is not available for assignment.")

    if reopening or admission.cage_id != cage.pk or admission.status not in Admission.OCCUPYING_STATUSES:
        occupied = current_pet_count(cage, exclude_admission=admission if admission.pk else None)
        if occupied >= cage.max_pet_count:
            raise CageFull(f"Cage {cage.cage_number} is full ({occupied}/{cage.max_pet_count}).")

    previous_cage_id = admission.cage_id
    admission.cage = cage
    admission.save(update_fields=['cage', 'updated_at'])

    if cage.status == 'available':
        cage.status = 'occupied'
        cage.save(update_fields=['status', 'updated_at'])
    if previous_cage_id and previous_cage_id != cage.pk:
        release_cage(previous_cage_id)

    logger.info('cage assigned admission=%s cage=%s', admission.admission_number, cage.cage_number)
    return cage


@transaction.atomic
def release_cage(cage_id) -> None:
    """Flip an occupied cage back to available once nobody is left in it."""
    if not cage_id:
        return
    cage = Cage.objects.select_for_update().filter(pk=cage_id).first()
    if cage is None or cage.status != 'occupied':
        return
    if current_pet_count(cage) == 0:
        cage.status = 'available'
        cage.save(update_fields=['status', 'updated_at'])
