from django.db import transaction
from django.utils import timezone

from ..exceptions import DailyOrderLimitReached
from ..models import Order, OrderNumberSequence

COUNTER_DIGITS = 4
MAX_DAILY_ORDERS = 10 ** COUNTER_DIGITS - 1


def day_prefix(day):
    return day.strftime('%d%m%Y')


def last_counter(prefix):
    last = (
        Order.objects
        .filter(order_number__startswith=prefix)
        .order_by('-order_number')
        .values_list('order_number', flat=True)
        .first()
    )
    if last:
        try:
            return int(last[-COUNTER_DIGITS:])
        except ValueError:
            return 0
    return 0


def next_order_number(day=None):
    """
    DDMMYYYY plus a 4-digit counter that restarts at 0001 every day.

    The counter row is locked for the duration of the transaction so two
    concurrent orders can never read the same value. Order 10000 of a day
    would not fit the column, so it is refused instead.
    """
    day = day or timezone.localdate()
    prefix = day_prefix(day)
    with transaction.atomic():
        seq, _ = OrderNumberSequence.objects.select_for_update().get_or_create(
            day=day,
            defaults={'last': last_counter(prefix)},
        )
        if seq.last >= MAX_DAILY_ORDERS:
            raise DailyOrderLimitReached(f"All {MAX_DAILY_ORDERS} order numbers for {prefix} are used")
        seq.last += 1
        seq.save(update_fields=['last'])
        return f"{prefix}{seq.last:0{COUNTER_DIGITS}d}"
