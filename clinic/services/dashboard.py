from typing import Any, Dict

from django.db.models import Count, Sum
from django.utils import timezone

from clinic.models import Admission, Cage, Donation, Medicine, PetOwner
from clinic.services.cages import with_occupancy
from clinic.services.pets import dashboard_active_pets
from clinic.services.purchasing import low_stock_medicines


def summary() -> Dict[str, Any]:
    today = timezone.localdate()
    cages = with_occupancy(Cage.objects.filter(active=True))
    occupied = sum(1 for c in cages if c.current_count > 0)
    month_total = (
        Donation.objects.filter(donation_date__year=today.year, donation_date__month=today.month)
        .aggregate(total=Sum('total_value'))['total']
    )
    by_status = {
        row['status']: row['n']
        for row in Admission.objects.order_by().values('status').annotate(n=Count('id'))
    }
    return {
        'active_pets': dashboard_active_pets().count(),
        'active_owners': PetOwner.objects.filter(active=True).count(),
        'cages': {'occupied': occupied, 'total': len(cages)},
        'donations_this_month': float(month_total or 0),
        'low_stock_medicines': low_stock_medicines(Medicine.objects.filter(active=True)).count(),
        'admissions_by_status': {s: by_status.get(s, 0) for s, _ in Admission.STATUS_CHOICES},
    }
