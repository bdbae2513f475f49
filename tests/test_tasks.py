"""Tests for scheduled housekeeping and management commands."""

from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.utils import timezone

from bureau.db_utils import DEFAULT_CURRENCIES
from bureau.models import Currency, QueueEntry
from bureau.tasks import cancel_stale_queue_entries


def test_cancel_stale_queue_entries_task(make_entry, customer):
    make_entry()
    QueueEntry.objects.create(
        ticket_number='A105',
        queue_date=timezone.localdate() - timedelta(days=2),
        customer=customer,
        service_type='buy',
        currency_id='USD',
        requested_amount=Decimal('5'),
        status=QueueEntry.Status.PROCESSING,
    )

    result = cancel_stale_queue_entries()

    assert result == {'success': True, 'cancelled': 1}
    assert QueueEntry.objects.filter(status=QueueEntry.Status.WAITING).count() == 1


def test_seed_currencies_command_upserts(db):
    Currency.objects.create(code='USD', name='Old', buy_rate=Decimal('1'), sell_rate=Decimal('1'))
    out = StringIO()

    call_command('seed_currencies', stdout=out)

    assert Currency.objects.count() == len(DEFAULT_CURRENCIES)
    usd = Currency.objects.get(code='USD')
    assert usd.name == 'US Dollar'
    assert usd.buy_rate == Decimal('2520')
    assert Currency.objects.get(code='SAR').stock_amount == Decimal('0')
    assert 'Seeded 6 currencies' in out.getvalue()
