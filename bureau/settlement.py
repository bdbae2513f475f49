"""
Transaction settlement: turns a queue entry into a recorded exchange.

Everything from reading the rates to closing the ticket happens in a single
``transaction.atomic`` block. The queue entry row and its currency row are locked
first (always in that order), so two tellers settling the same currency are
serialized and each sees the other's stock change. Business-rule failures raise
before the block commits; nothing is ever left half-applied.
"""

from decimal import Decimal
import logging
import uuid
from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
from .customers import CustomerDirectory
from .exceptions import InvalidQueueState, NotFound
from .ledger import CurrencyLedger
from .models import ExchangeTransaction, Notification, QueueEntry
from .money import RATE_QUANTUM, local_amount, parse_positive

logger = logging.getLogger(__name__)


def suspicious_threshold(currency_code) -> Decimal:
    """AML reporting threshold for a currency, in foreign-currency units."""
    thresholds = getattr(settings, 'SUSPICIOUS_AMOUNT_THRESHOLD_BY_CURRENCY', {})
    return Decimal(str(thresholds.get(currency_code, settings.SUSPICIOUS_AMOUNT_THRESHOLD_DEFAULT)))


def generate_reference(now=None):
    now = now or timezone.now()
    return f"TRX-{now:%Y%m%d}-{uuid.uuid4().hex[:12].upper()}"


class SettlementEngine:
    """Settles claimed queue entries against the currency ledger."""

    def __init__(self, using=DEFAULT_DB_ALIAS, ledger=None, directory=None):
        self.using = using
        self.ledger = ledger or CurrencyLedger(using=using)
        self.directory = directory or CustomerDirectory(using=using)

    def _lock_entry(self, queue_id):
        try:
            return (
                QueueEntry.objects.using(self.using)
                .select_related('currency', 'customer')
                .select_for_update(of=('self', 'currency'))
                .get(pk=queue_id)
            )
        except QueueEntry.DoesNotExist:
            raise NotFound(f"Queue entry {queue_id} not found")

    def settle(self, queue_id, teller_id, amount=None, rate=None):
        """Execute the exchange for ``queue_id`` and return the recorded transaction.

        Args:
            queue_id: The queue entry being served.
            teller_id: The teller executing the exchange.
            amount: Foreign amount actually exchanged; defaults to the requested amount.
            rate: Rate actually applied; defaults to the currency's buy or sell rate.

        Raises:
            NotFound: the queue entry does not exist.
            InvalidQueueState: the entry is already completed or cancelled.
            InsufficientStock: the branch cannot cover a sell from stock.
            InvalidRequest: a non-positive override amount or rate.
        """
        if amount is not None:
            amount = parse_positive(amount, 'amount')
        if rate is not None:
            rate = parse_positive(rate, 'rate', quantum=RATE_QUANTUM)

        with transaction.atomic(using=self.using):
            entry = self._lock_entry(queue_id)
            if not entry.can_transition(QueueEntry.Status.COMPLETED):
                raise InvalidQueueState(f"Ticket {entry.ticket_number} is already {entry.status}")

            currency = entry.currency
            amount_foreign = amount if amount is not None else entry.requested_amount
            applied_rate = rate if rate is not None else self.ledger.rate_for(currency, entry.service_type)
            amount_local = local_amount(amount_foreign, applied_rate)

            delta = self.ledger.stock_delta(entry.service_type, amount_foreign)
            new_stock = self.ledger.apply_delta(currency, delta)

            now = timezone.now()
            is_suspicious = amount_foreign >= suspicious_threshold(currency.code)
            record = ExchangeTransaction.objects.using(self.using).create(
                reference=generate_reference(now),
                queue_entry=entry,
                teller_id=teller_id,
                customer=entry.customer,
                transaction_type=entry.service_type,
                currency=currency,
                amount_foreign=amount_foreign,
                exchange_rate=applied_rate,
                amount_local=amount_local,
                is_suspicious=is_suspicious,
                created_at=now,
            )
            if is_suspicious:
                self.directory.flag(entry.customer)

            entry.status = QueueEntry.Status.COMPLETED
            entry.completed_at = now
            update_fields = ['status', 'completed_at']
            if entry.assigned_teller_id is None:
                entry.assigned_teller_id = teller_id
                update_fields.append('assigned_teller')
            entry.save(using=self.using, update_fields=update_fields)

            if new_stock <= currency.low_stock_threshold:
                Notification.objects.using(self.using).create(
                    type=Notification.LOW_CASH,
                    message=f"Low stock for {currency.code}: Only {new_stock} remains.",
                    recipient_role='admin',
                    created_at=now,
                )
                logger.warning(f"Low stock for {currency.code}: {new_stock} at or below {currency.low_stock_threshold}")

        logger.info(
            f"Transaction {record.reference} settled: {record.transaction_type} "
            f"{amount_foreign} {currency.code} @ {applied_rate} = {amount_local}"
        )
        return record
