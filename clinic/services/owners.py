from typing import Optional, Tuple

from clinic.models import PetOwner

UNKNOWN_OWNER = {'name': 'Unknown Owner', 'phone': '0000000000', 'address': 'Unknown'}


def find_by_phone(phone: str) -> Optional[PetOwner]:
    phone = (phone or '').strip()
    if not phone:
        return None
    return PetOwner.objects.filter(phone=phone, active=True).order_by('created_at').first()


def merge_owner_by_phone(*, name: str, phone: str, address: str = '', email: str = '',
                         notes: Optional[str] = None) -> Tuple[PetOwner, bool]:
    """Update the active owner holding ``phone`` or create a new one.

    On a match the name, address and email are overwritten.  Returns the
    owner and whether it was created.
    """
    owner = find_by_phone(phone)
    if owner is None:
        owner = PetOwner.objects.create(
            name=name, phone=phone.strip(), address=address or '', email=email or '', notes=notes or '',
        )
        return owner, True
    owner.name = name
    owner.address = address or ''
    owner.email = email or ''
    fields = ['name', 'address', 'email', 'updated_at']
    if notes is not None:
        owner.notes = notes
        fields.append('notes')
    owner.save(update_fields=fields)
    return owner, False


def create_unknown_owner() -> PetOwner:
    return PetOwner.objects.create(**UNKNOWN_OWNER)
