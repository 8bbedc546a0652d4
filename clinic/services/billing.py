from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from clinic.models import Bill, BillItem
from clinic.services.audit import log_action
from clinic.services.numbering import next_invoice_number
from clinic.services.purchasing import line_total


def _apply_items(bill: Bill, items: List[Dict[str, Any]]) -> None:
    bill.items.all().delete()
    rows = [
        BillItem(bill=bill, description=i['description'], quantity=i['quantity'], unit_price=i['unit_price'],
                 total_price=line_total(i['quantity'], i['unit_price']))
        for i in items
    ]
    BillItem.objects.bulk_create(rows)
    bill.subtotal = sum((r.total_price for r in rows), Decimal('0'))


def recompute_total(bill: Bill) -> None:
    bill.total_amount = bill.subtotal + (bill.tax_amount or 0) - (bill.discount_amount or 0)


@transaction.atomic
def create_bill(*, items: List[Dict[str, Any]], user=None, **fields) -> Bill:
    fields.setdefault('invoice_date', timezone.localdate())
    bill = Bill.objects.create(
        invoice_number=next_invoice_number(),
        created_by=user if getattr(user, 'pk', None) else None,
        **fields,
    )
    _apply_items(bill, items)
    recompute_total(bill)
    bill.save()
    log_action(user=user, action='bill.create', table_name='billing', record_id=bill.pk,
               new_data={'invoice_number': bill.invoice_number, 'total_amount': float(bill.total_amount)})
    return bill


@transaction.atomic
def update_bill(bill: Bill, *, items: Optional[List[Dict[str, Any]]] = None, user=None, **fields) -> Bill:
    for k, v in fields.items():
        setattr(bill, k, v)
    if items is not None:
        _apply_items(bill, items)
    recompute_total(bill)
    bill.save()
    log_action(user=user, action='bill.update', table_name='billing', record_id=bill.pk,
               new_data={'status': bill.status, 'total_amount': float(bill.total_amount)})
    return bill
