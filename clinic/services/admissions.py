"""
Admission intake and discharge.

``save_admission`` writes the owner, pet, admission, cage assignment and
any admission-time donation in a single transaction; a full cage or a
validation error leaves nothing behind.  Rendering the donation receipt
happens after commit and can only produce a warning.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.db import transaction
from django.utils import timezone

from clinic.models import Admission, Donation
from clinic.services import cages as cage_service
from clinic.services.audit import log_action
from clinic.services.donations import record_donation, try_render_receipt
from clinic.services.numbering import next_admission_number
from clinic.services.owners import create_unknown_owner, merge_owner_by_phone
from clinic.services.pets import create_pet, update_pet

logger = logging.getLogger(__name__)

ANTIBIOTIC_DAYS = ('day1', 'day2', 'day3', 'day5')

ADMISSION_FIELDS = (
    'admission_date', 'reason', 'diagnosis', 'symptoms', 'notes', 'xray_date', 'operation_date',
    'blood_test_report', 'payment_received', 'doctor', 'brought_by',
)

RECEIPT_WARNING = 'Receipt could not be generated'


def antibiotics_schedule(data: Optional[Dict[str, Any]]) -> Dict[str, Optional[str]]:
    data = data or {}
    return {day: (str(data.get(day)) if data.get(day) else None) for day in ANTIBIOTIC_DAYS}


def _resolve_owner(owner_data: Dict[str, Any], unknown_owner: bool, existing: Optional[Admission]):
    if existing is not None:
        owner = existing.pet.owner
        if not unknown_owner:
            for k in ('name', 'phone', 'address', 'email'):
                if k not in owner_data:
                    continue
                value = (owner_data[k] or '').strip()
                # name and phone are the merge keys; blanks never overwrite them
                if value or k not in ('name', 'phone'):
                    setattr(owner, k, value)
            owner.save()
        return owner
    if unknown_owner:
        return create_unknown_owner()
    owner, _ = merge_owner_by_phone(
        name=owner_data['name'], phone=owner_data['phone'],
        address=owner_data.get('address', ''), email=owner_data.get('email', ''),
    )
    return owner


def save_admission(*, owner: Dict[str, Any], pet: Dict[str, Any], admission: Dict[str, Any],
                   unknown_owner: bool = False, instance: Optional[Admission] = None,
                   user=None) -> Tuple[Admission, Optional[Donation], List[str]]:
    """Create or update an admission together with its owner and pet.

    Returns ``(admission, donation, warnings)``.
    """
    cage_id = admission.get('cage_id')
    was_occupying = instance is None or instance.status in Admission.OCCUPYING_STATUSES
    with transaction.atomic():
        owner_obj = _resolve_owner(owner, unknown_owner, instance)

        if instance is None:
            pet_obj = create_pet(owner=owner_obj, **pet)
        else:
            pet_obj = update_pet(instance.pet, **pet)

        fields = {k: admission[k] for k in ADMISSION_FIELDS if k in admission}
        if instance is None or 'antibiotics' in admission:
            fields['antibiotics_schedule'] = antibiotics_schedule(admission.get('antibiotics'))
        if instance is None:
            adm = Admission.objects.create(
                admission_number=next_admission_number(),
                pet=pet_obj,
                status='admitted',
                admitted_by=user if getattr(user, 'pk', None) else None,
                **{'admission_date': timezone.now(), **fields},
            )
        else:
            adm = instance
            if 'status' in admission:
                adm.status = admission['status']
            if was_occupying and adm.status not in Admission.OCCUPYING_STATUSES:
                adm.discharge_date = adm.discharge_date or timezone.now()
            elif not was_occupying and adm.status in Admission.OCCUPYING_STATUSES:
                adm.discharge_date = None
            for k, v in fields.items():
                setattr(adm, k, v)
            adm.save()

        reopening = not was_occupying and adm.status in Admission.OCCUPYING_STATUSES
        if adm.status not in Admission.OCCUPYING_STATUSES:
            cage_service.release_cage(adm.cage_id)
        elif cage_id:
            cage_service.assign_cage(adm, cage_id, reopening=reopening)
        elif reopening and adm.cage_id and 'cage_id' not in admission:
            cage_service.assign_cage(adm, adm.cage_id, reopening=True)
        elif instance is not None and 'cage_id' in admission and adm.cage_id:
            previous = adm.cage_id
            adm.cage = None
            adm.save(update_fields=['cage', 'updated_at'])
            cage_service.release_cage(previous)

        donation = None
        amount = Decimal(admission.get('payment_received') or 0)
        if instance is None and amount > 0:
            donation = record_donation(
                donor=owner_obj,
                donor_name=owner_obj.name,
                donor_phone=owner_obj.phone,
                donor_address=owner_obj.address,
                donor_email=owner_obj.email,
                amount=amount,
                admission=adm,
                notes=f"Received at admission {adm.admission_number}",
                user=user,
            )

        log_action(user=user, action='admission.create' if instance is None else 'admission.update',
                   table_name='admissions', record_id=adm.pk,
                   new_data={'admission_number': adm.admission_number, 'status': adm.status,
                             'cage_id': str(adm.cage_id) if adm.cage_id else None})

    logger.info('admission saved number=%s created=%s', adm.admission_number, instance is None)
    warnings: List[str] = []
    if donation is not None and try_render_receipt(donation) is None:
        warnings.append(RECEIPT_WARNING)
    return adm, donation, warnings


@transaction.atomic
def discharge(admission: Admission, *, status: str = 'discharged', discharge_date=None, user=None) -> Admission:
    if status not in ('discharged', 'deceased'):
        raise ValueError('status must be discharged or deceased')
    if admission.status not in Admission.OCCUPYING_STATUSES:
        raise ValueError('admission is already closed')
    admission.status = status
    admission.discharge_date = discharge_date or timezone.now()
    admission.save(update_fields=['status', 'discharge_date', 'updated_at'])
    cage_service.release_cage(admission.cage_id)
    log_action(user=user, action='admission.discharge', table_name='admissions', record_id=admission.pk,
               new_data={'status': status})
    logger.info('admission closed number=%s status=%s', admission.admission_number, status)
    return admission
