"""Tests for the branch workflow: audit trail, queue events and rate board cache."""

from decimal import Decimal

import pytest

from bureau import audit, events
from bureau.exceptions import InsufficientStock, NotFound
from bureau.models import AuditLog, Currency, QueueEntry


def _join(workflow, id_number='P1234567', service_type='buy', currency_code='USD', amount='50'):
    return workflow.join_queue(
        full_name='Amina Juma',
        phone_number='+255700000001',
        id_type='passport',
        id_number=id_number,
        service_type=service_type,
        currency_code=currency_code,
        amount=amount,
    )


def test_join_queue_issues_ticket_and_announces_it(workflow, publisher, currencies):
    entry, estimated_wait = _join(workflow)

    assert entry.ticket_number == 'A100'
    assert estimated_wait == 0
    message = publisher.published[-1]
    assert message['event'] == events.NEW_CUSTOMER
    assert message['data']['ticket_number'] == 'A100'
    assert message['data']['customer']['full_name'] == 'Amina Juma'
    assert AuditLog.objects.get(action=audit.QUEUE_JOIN).details['ticket'] == 'A100'


def test_returning_customer_reuses_record(workflow, currencies):
    first, _ = _join(workflow)
    second, wait = _join(workflow, amount='20')

    assert first.customer_id == second.customer_id
    assert second.ticket_number == 'A101'
    assert wait == 5


def test_failed_admission_publishes_nothing(workflow, publisher, currencies):
    with pytest.raises(NotFound):
        _join(workflow, currency_code='XYZ')

    assert publisher.published == []
    assert not QueueEntry.objects.exists()


def test_call_next_publishes_called_event(workflow, publisher, currencies, teller):
    entry, _ = _join(workflow)

    called = workflow.call_next(teller.pk)

    assert called.pk == entry.pk
    assert publisher.published[-1]['event'] == events.CALLED
    assert publisher.published[-1]['data']['assigned_teller_id'] == teller.pk
    assert AuditLog.objects.filter(action=audit.QUEUE_CALL, user=teller).exists()


def test_call_next_on_empty_queue_is_quiet(workflow, publisher, currencies, teller):
    assert workflow.call_next(teller.pk) is None
    assert publisher.published == []


def test_execute_transaction_audits_and_publishes_after_commit(workflow, publisher, currencies, teller):
    entry, _ = _join(workflow)
    workflow.call_next(teller.pk)

    record = workflow.execute_transaction(entry.pk, teller.pk)

    log = AuditLog.objects.get(action=audit.TRANSACTION_EXECUTE)
    assert log.user_id == teller.pk
    assert log.details['reference'] == record.reference
    assert log.details['ticket'] == 'A100'
    assert log.details['currency'] == 'USD'
    assert publisher.published[-1] == {'event': events.COMPLETED, 'data': {'queue_id': entry.pk}}


def test_failed_settlement_is_not_audited_or_published(workflow, publisher, currencies, teller):
    entry, _ = _join(workflow, service_type='sell', currency_code='SAR', amount='5')
    workflow.call_next(teller.pk)
    published_before = len(publisher.published)

    with pytest.raises(InsufficientStock):
        workflow.execute_transaction(entry.pk, teller.pk)

    assert not AuditLog.objects.filter(action=audit.TRANSACTION_EXECUTE).exists()
    assert len(publisher.published) == published_before


def test_subscribers_receive_events(workflow, publisher, currencies):
    received = []
    publisher.subscribe(received.append)

    _join(workflow)

    assert [m['event'] for m in received] == [events.NEW_CUSTOMER]


def test_cancel_publishes_and_audits(workflow, publisher, currencies, teller):
    entry, _ = _join(workflow)

    workflow.cancel(entry.pk, teller.pk, reason='Expired ID')

    assert publisher.published[-1] == {'event': events.CANCELLED, 'data': {'queue_id': entry.pk}}
    assert AuditLog.objects.get(action=audit.QUEUE_CANCEL).details['reason'] == 'Expired ID'


def test_rate_board_is_cached_until_settlement(workflow, currencies, teller):
    board, source = workflow.rate_board()
    assert source == 'database'
    assert [row['code'] for row in board] == ['GBP', 'SAR', 'USD']

    _, source = workflow.rate_board()
    assert source == 'cache'

    entry, _ = _join(workflow)
    workflow.execute_transaction(entry.pk, teller.pk)
    _, source = workflow.rate_board()
    assert source == 'database'


def test_rate_board_hides_sell_when_out_of_stock(workflow, currencies):
    board, _ = workflow.rate_board()
    sar = next(row for row in board if row['code'] == 'SAR')

    assert sar['sell_available'] is False
    assert sar['buy_available'] is True
    assert 'stock_amount' not in sar


def test_adjust_stock_is_audited(workflow, currencies, admin_user):
    new_stock = workflow.adjust_stock('SAR', '250', admin_user.pk)

    assert new_stock == Decimal('250')
    assert Currency.objects.get(code='SAR').stock_amount == Decimal('250')
    log = AuditLog.objects.get(action=audit.STOCK_ADJUST)
    assert log.details == {'currency': 'SAR', 'delta': '250.00', 'new_stock': '250.00'}


def test_teller_history_is_newest_first(workflow, currencies, teller, second_teller):
    first, _ = _join(workflow, id_number='A-1', amount='10')
    second, _ = _join(workflow, id_number='A-2', amount='20')
    other, _ = _join(workflow, id_number='A-3', amount='30')
    workflow.execute_transaction(first.pk, teller.pk)
    workflow.execute_transaction(second.pk, teller.pk)
    workflow.execute_transaction(other.pk, second_teller.pk)

    history = workflow.teller_history(teller.pk)

    assert [r.queue_entry_id for r in history] == [second.pk, first.pk]


def test_teller_history_respects_limit(workflow, currencies, teller, settings):
    settings.TELLER_HISTORY_LIMIT = 2
    for i in range(3):
        entry, _ = _join(workflow, id_number=f"L-{i}", amount='1')
        workflow.execute_transaction(entry.pk, teller.pk)

    assert len(workflow.teller_history(teller.pk)) == 2
