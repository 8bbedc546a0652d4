import logging
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import Count, F, Max, Sum
from django.utils import timezone

from clinic.models import DonatedStock, Donation, Medicine
from clinic.services.audit import log_action
from clinic.services.numbering import next_receipt_number
from clinic.services.owners import merge_owner_by_phone
from clinic.services.receipts import render_donation_receipt

logger = logging.getLogger(__name__)


@transaction.atomic
def record_donation(*, donor_name: str, donor_phone: str, donor_address: str = '', donor_email: str = '',
                    amount, donation_date=None, notes: str = '', admission=None, donor=None,
                    stock_items: Optional[List[Dict]] = None, user=None) -> Donation:
    """Create a donation, merging the donor into pet owners by phone.

    ``stock_items`` entries are ``{medicine, quantity, unit_value, expiry_date}``
    and each one is added to the medicine's stock.
    """
    if donor is None:
        donor, _ = merge_owner_by_phone(
            name=donor_name, phone=donor_phone, address=donor_address, email=donor_email,
        )
    donation = Donation.objects.create(
        receipt_number=next_receipt_number(),
        donor=donor,
        admission=admission,
        donor_name=donor_name,
        donor_phone=donor_phone or '',
        donor_email=donor_email or '',
        donor_address=donor_address or '',
        donation_date=donation_date or timezone.localdate(),
        total_value=Decimal(amount),
        notes=notes or '',
        received_by=user if getattr(user, 'pk', None) else None,
    )
    for item in stock_items or []:
        medicine = item['medicine']
        DonatedStock.objects.create(
            donation=donation,
            medicine=medicine,
            quantity=item['quantity'],
            unit_value=item.get('unit_value'),
            expiry_date=item.get('expiry_date'),
        )
        Medicine.objects.filter(pk=medicine.pk).update(stock_quantity=F('stock_quantity') + item['quantity'])

    log_action(user=user, action='donation.create', table_name='donations', record_id=donation.pk,
               new_data={'receipt_number': donation.receipt_number, 'total_value': float(donation.total_value)})
    logger.info('donation recorded receipt=%s amount=%s', donation.receipt_number, donation.total_value)
    return donation


def try_render_receipt(donation: Donation) -> Optional[bytes]:
    """Render the receipt, logging and returning None on failure."""
    try:
        return render_donation_receipt(donation)
    except Exception:
        logger.warning('receipt rendering failed receipt=%s', donation.receipt_number, exc_info=True)
        return None


def donors_summary() -> List[Dict]:
    """Donations grouped per donor (phone, else name), largest total first."""
    rows: Dict[str, Dict] = {}
    grouped = (
        Donation.objects.order_by().values('donor_phone', 'donor_name')
        .annotate(total=Sum('total_value'), count=Count('id'), last=Max('donation_date'))
    )
    for r in grouped:
        key = r['donor_phone'] or r['donor_name']
        entry = rows.setdefault(key, {
            'donor_name': r['donor_name'],
            'donor_phone': r['donor_phone'],
            'total_amount': Decimal('0'),
            'donation_count': 0,
            'last_donation_date': None,
        })
        entry['total_amount'] += r['total'] or Decimal('0')
        entry['donation_count'] += r['count']
        if r['last'] and (entry['last_donation_date'] is None or r['last'] > entry['last_donation_date']):
            entry['last_donation_date'] = r['last']
            entry['donor_name'] = r['donor_name']
    return sorted(rows.values(), key=lambda e: e['total_amount'], reverse=True)
