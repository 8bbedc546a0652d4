"""Human-readable document numbers: ``<PREFIX>-YYYYMMDD-NNNN``."""
from django.db.models import Model
from django.utils import timezone

from clinic.models import Admission, Bill, Donation, Pet, PurchaseOrder


def _next_daily_number(model: type[Model], field: str, prefix: str) -> str:
    stem = f"{prefix}-{timezone.localdate():%Y%m%d}-"
    last = (
        model.objects.filter(**{f'{field}__startswith': stem})
        .order_by(f'-{field}')
        .values_list(field, flat=True)
        .first()
    )
    seq = int(last.rsplit('-', 1)[1]) + 1 if last else 1
    return f"{stem}{seq:04d}"


def next_admission_number() -> str:
    return _next_daily_number(Admission, 'admission_number', 'ADM')


def next_po_number() -> str:
    return _next_daily_number(PurchaseOrder, 'po_number', 'PO')


def next_invoice_number() -> str:
    return _next_daily_number(Bill, 'invoice_number', 'INV')


def next_receipt_number() -> str:
    return _next_daily_number(Donation, 'receipt_number', 'DON')


def next_pet_tag() -> str:
    last = (
        Pet.objects.filter(microchip_id__startswith='TAG-')
        .order_by('-microchip_id')
        .values_list('microchip_id', flat=True)
        .first()
    )
    try:
        seq = int(last.split('-', 1)[1]) + 1 if last else 1
    except ValueError:
        seq = Pet.objects.count() + 1
    return f"TAG-{seq:06d}"
