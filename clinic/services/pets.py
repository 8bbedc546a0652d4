import logging

from django.db.models import Q, QuerySet
from django.utils import timezone

from clinic.models import Pet
from clinic.services.numbering import next_pet_tag

logger = logging.getLogger(__name__)


def active_pets() -> QuerySet:
    """The default pet listing: pets that have not been removed."""
    return Pet.objects.filter(removed=False)


def dashboard_active_pets() -> QuerySet:
    """Pets counted as active on the dashboard; cured pets still count."""
    return Pet.objects.filter(Q(removed=False) | Q(removal_reason='Cured'))


def create_pet(*, owner, **fields) -> Pet:
    fields['name'] = (fields.get('name') or '').strip() or 'Unknown'
    if not fields.get('microchip_id'):
        fields['microchip_id'] = next_pet_tag()
    return Pet.objects.create(owner=owner, **fields)


def update_pet(pet: Pet, **fields) -> Pet:
    for k, v in fields.items():
        setattr(pet, k, v)
    if not pet.name:
        pet.name = 'Unknown'
    pet.save()
    return pet


def remove_pet(pet: Pet, *, reason: str, removal_date=None) -> Pet:
    if reason not in dict(Pet.REMOVAL_REASONS):
        raise ValueError('invalid removal reason')
    pet.removed = True
    pet.removal_reason = reason
    pet.removal_date = removal_date or timezone.localdate()
    pet.save(update_fields=['removed', 'removal_reason', 'removal_date', 'updated_at'])
    logger.info('pet removed pet=%s reason=%s', pet.pk, reason)
    return pet

