"""Tests for admission, FIFO dispatch and cancellation."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from bureau.customers import CustomerDirectory
from bureau.exceptions import CurrencyUnavailable, InvalidQueueState, InvalidRequest, NotFound
from bureau.models import Currency, QueueEntry, TicketSequence


def _customer(number):
    return CustomerDirectory().find_or_create(f"ID-{number}", f"Customer {number}")


def test_admit_issues_first_ticket_of_the_day(make_entry):
    entry = make_entry()

    assert entry.ticket_number == 'A100'
    assert entry.status == QueueEntry.Status.WAITING
    assert entry.queue_date == timezone.localdate()
    assert entry.requested_amount == Decimal('50')


def test_ticket_numbers_follow_the_daily_counter(make_entry):
    tickets = [make_entry().ticket_number for _ in range(3)]

    assert tickets == ['A100', 'A101', 'A102']
    assert TicketSequence.objects.get(day=timezone.localdate()).issued == 3


def test_ticket_numbers_restart_each_day(queue, make_entry):
    yesterday = timezone.localdate() - timedelta(days=1)
    TicketSequence.objects.create(day=yesterday, issued=40)

    assert make_entry().ticket_number == 'A100'


def test_ticket_prefix_and_offset_are_configurable(settings, make_entry):
    settings.TICKET_PREFIX = 'B'
    settings.TICKET_BASE_OFFSET = 1

    assert make_entry().ticket_number == 'B1'


def test_admit_rejects_unknown_currency(queue, customer, currencies):
    with pytest.raises(NotFound):
        queue.admit(customer, 'buy', 'XYZ', '10')
    assert not QueueEntry.objects.exists()


def test_admit_rejects_unknown_service_type(queue, customer, currencies):
    with pytest.raises(InvalidRequest):
        queue.admit(customer, 'swap', 'USD', '10')


def test_admit_rejects_non_positive_amount(queue, customer, currencies):
    with pytest.raises(InvalidRequest):
        queue.admit(customer, 'buy', 'USD', '0')


def test_admit_rejects_service_not_offered(queue, customer, currencies):
    Currency.objects.filter(code='GBP').update(sell_available=False)

    with pytest.raises(CurrencyUnavailable):
        queue.admit(customer, 'sell', 'GBP', '10')
    assert queue.admit(customer, 'buy', 'GBP', '10').status == QueueEntry.Status.WAITING


def test_admit_enforces_transaction_limits(queue, customer, currencies):
    Currency.objects.filter(code='USD').update(min_transaction=Decimal('50'), max_transaction=Decimal('10000'))

    with pytest.raises(InvalidRequest):
        queue.admit(customer, 'buy', 'USD', '49.99')
    with pytest.raises(InvalidRequest):
        queue.admit(customer, 'buy', 'USD', '10000.01')
    assert queue.admit(customer, 'buy', 'USD', '10000').ticket_number == 'A100'


def test_rejected_admission_does_not_consume_a_ticket(queue, customer, currencies):
    Currency.objects.filter(code='USD').update(buy_available=False)
    with pytest.raises(CurrencyUnavailable):
        queue.admit(customer, 'buy', 'USD', '10')
    Currency.objects.filter(code='USD').update(buy_available=True)

    assert queue.admit(customer, 'buy', 'USD', '10').ticket_number == 'A100'


def test_list_active_is_fifo_and_skips_closed_entries(queue, make_entry, teller):
    first = make_entry()
    second = make_entry(who=_customer(2))
    third = make_entry(who=_customer(3))
    queue.claim_next(teller.pk)
    queue.cancel(third.pk)

    active = queue.list_active()

    assert [e.pk for e in active] == [first.pk, second.pk]
    assert active[0].status == QueueEntry.Status.PROCESSING


def test_estimated_wait_counts_customers_ahead(settings, queue, make_entry):
    settings.ESTIMATED_WAIT_MINUTES_PER_CUSTOMER = 5
    first = make_entry()
    second = make_entry(who=_customer(2))

    assert queue.estimated_wait(first) == 0
    assert queue.estimated_wait(second) == 5


def test_claim_next_takes_oldest_waiting_entry(queue, make_entry, teller):
    first = make_entry()
    make_entry(who=_customer(2))

    claimed = queue.claim_next(teller.pk)

    assert claimed.pk == first.pk
    assert claimed.status == QueueEntry.Status.PROCESSING
    first.refresh_from_db()
    assert first.status == QueueEntry.Status.PROCESSING
    assert first.assigned_teller_id == teller.pk
    assert first.called_at is not None


def test_claim_next_never_hands_out_the_same_entry_twice(queue, make_entry, teller, second_teller):
    first = make_entry()
    second = make_entry(who=_customer(2))

    claims = [queue.claim_next(teller.pk), queue.claim_next(second_teller.pk), queue.claim_next(teller.pk)]

    assert [c.pk for c in claims[:2]] == [first.pk, second.pk]
    assert claims[2] is None


def test_two_tellers_one_waiting_entry(queue, make_entry, teller, second_teller):
    entry = make_entry()

    assert queue.claim_next(teller.pk).pk == entry.pk
    assert queue.claim_next(second_teller.pk) is None
    entry.refresh_from_db()
    assert entry.assigned_teller_id == teller.pk


def test_claim_next_on_empty_queue_returns_none(queue, teller):
    assert queue.claim_next(teller.pk) is None


def test_cancel_closes_open_entry(queue, make_entry):
    entry = make_entry()

    cancelled = queue.cancel(entry.pk, reason='Customer left')

    assert cancelled.status == QueueEntry.Status.CANCELLED
    entry.refresh_from_db()
    assert entry.notes == 'Customer left'
    assert entry.completed_at is not None


def test_cancel_refuses_terminal_entries(queue, make_entry):
    entry = make_entry()
    queue.cancel(entry.pk)

    with pytest.raises(InvalidQueueState):
        queue.cancel(entry.pk)


def test_cancel_unknown_entry(queue, db):
    with pytest.raises(NotFound):
        queue.cancel(999999)


def test_cancel_stale_closes_previous_days_only(queue, make_entry, customer):
    today_entry = make_entry()
    yesterday = timezone.localdate() - timedelta(days=1)
    stale = QueueEntry.objects.create(
        ticket_number='A100',
        queue_date=yesterday,
        customer=customer,
        service_type='sell',
        currency_id='USD',
        requested_amount=Decimal('20'),
        created_at=timezone.now() - timedelta(days=1),
    )

    assert queue.cancel_stale() == 1

    stale.refresh_from_db()
    today_entry.refresh_from_db()
    assert stale.status == QueueEntry.Status.CANCELLED
    assert today_entry.status == QueueEntry.Status.WAITING


def test_state_machine_has_no_regressions():
    entry = QueueEntry(status=QueueEntry.Status.COMPLETED)

    assert entry.is_terminal
    assert not entry.can_transition(QueueEntry.Status.WAITING)
    assert not entry.can_transition(QueueEntry.Status.PROCESSING)
    assert QueueEntry(status=QueueEntry.Status.PROCESSING).can_transition(QueueEntry.Status.COMPLETED)
    assert not QueueEntry(status=QueueEntry.Status.PROCESSING).can_transition(QueueEntry.Status.WAITING)
