"""
Purchase orders and medicine stock.

Receiving a purchase order locks the order row, refuses orders that are
already received or cancelled, and adds each line's quantity to stock
with a single ``UPDATE ... SET stock_quantity = stock_quantity + n``.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from clinic.exceptions import PurchaseOrderClosed
from clinic.models import Medicine, POItem, PurchaseOrder
from clinic.services.audit import log_action
from clinic.services.numbering import next_po_number

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def line_total(quantity: int, unit_price) -> Decimal:
    return (Decimal(quantity) * Decimal(unit_price)).quantize(CENT)


def low_stock_medicines(qs: Optional[QuerySet] = None) -> QuerySet:
    qs = Medicine.objects.all() if qs is None else qs
    return qs.filter(stock_quantity__lte=F('reorder_level'))


def _write_items(po: PurchaseOrder, items: List[Dict[str, Any]]) -> Decimal:
    rows = [
        POItem(
            purchase_order=po,
            medicine=item['medicine'],
            quantity=item['quantity'],
            unit_price=item['unit_price'],
            total_price=line_total(item['quantity'], item['unit_price']),
        )
        for item in items
    ]
    POItem.objects.bulk_create(rows)
    return sum((r.total_price for r in rows), Decimal('0'))


@transaction.atomic
def create_purchase_order(*, items: List[Dict[str, Any]], user=None, **fields) -> PurchaseOrder:
    fields.setdefault('order_date', timezone.localdate())
    if fields.get('status') == 'received':
        raise ValueError('use the receive action to mark an order received')
    po = PurchaseOrder.objects.create(
        po_number=next_po_number(),
        created_by=user if getattr(user, 'pk', None) else None,
        **fields,
    )
    po.total_amount = _write_items(po, items)
    po.save(update_fields=['total_amount', 'updated_at'])
    log_action(user=user, action='purchase_order.create', table_name='purchase_orders', record_id=po.pk,
               new_data={'po_number': po.po_number, 'total_amount': float(po.total_amount)})
    return po


@transaction.atomic
def update_purchase_order(po: PurchaseOrder, *, items: Optional[List[Dict[str, Any]]] = None,
                          user=None, **fields) -> PurchaseOrder:
    """Update header fields and, when ``items`` is given, replace every line."""
    po = PurchaseOrder.objects.select_for_update().get(pk=po.pk)
    if po.status == 'received':
        raise PurchaseOrderClosed('A received purchase order cannot be edited.')
    if fields.get('status') == 'received':
        raise ValueError('use the receive action to mark an order received')
    for k, v in fields.items():
        setattr(po, k, v)
    if items is not None:
        po.items.all().delete()
        po.total_amount = _write_items(po, items)
    po.save()
    log_action(user=user, action='purchase_order.update', table_name='purchase_orders', record_id=po.pk,
               new_data={'status': po.status, 'total_amount': float(po.total_amount)})
    return po


@transaction.atomic
def receive_purchase_order(po_id, *, user=None) -> PurchaseOrder:
    po = PurchaseOrder.objects.select_for_update().get(pk=po_id)
    if po.status in PurchaseOrder.CLOSED_STATUSES:
        raise PurchaseOrderClosed(f"Purchase order {po.po_number} is already {po.status}.")

    for item in po.items.all():
        Medicine.objects.filter(pk=item.medicine_id).update(
            stock_quantity=F('stock_quantity') + item.quantity,
            updated_at=timezone.now(),
        )

    old_status = po.status
    po.status = 'received'
    po.received_at = timezone.now()
    po.save(update_fields=['status', 'received_at', 'updated_at'])
    log_action(user=user, action='purchase_order.receive', table_name='purchase_orders', record_id=po.pk,
               old_data={'status': old_status}, new_data={'status': po.status})
    logger.info('purchase order received po=%s items=%s', po.po_number, po.items.count())
    return po
