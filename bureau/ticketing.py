from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
import logging
from .exceptions import CurrencyUnavailable, InvalidQueueState, InvalidRequest, NotFound
from .models import Currency, QueueEntry, ServiceType, TicketSequence
from .money import parse_positive

logger = logging.getLogger(__name__)

# Claim attempts before giving up on a queue that keeps being emptied under us
MAX_CLAIM_ATTEMPTS = 5


class TicketQueue:
    """The branch's physical service queue.

    Admission hands out per-day ticket numbers from a locked counter row; dispatch
    is FIFO by creation time and each waiting entry can be claimed by one teller only.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _entries(self):
        return QueueEntry.objects.using(self.using)

    def next_ticket_number(self, day=None):
        """Allocate the next ticket number for ``day`` (default: today, branch time).

        Must be called inside the caller's transaction; the counter row stays locked
        until it commits, so racing admissions are serialized on it. A rollback
        returns the number to the pool.
        """
        day = day or timezone.localdate()
        sequence, _ = (
            TicketSequence.objects.using(self.using)
            .select_for_update()
            .get_or_create(day=day)
        )
        issued_before = sequence.issued
        sequence.issued = issued_before + 1
        sequence.save(using=self.using, update_fields=['issued'])
        return f"{settings.TICKET_PREFIX}{issued_before + settings.TICKET_BASE_OFFSET}"

    def admit(self, customer, service_type, currency_code, requested_amount):
        """Put a customer in line and return the new ``waiting`` entry."""
        if service_type not in ServiceType.values:
            raise InvalidRequest(f"service_type must be one of: {', '.join(ServiceType.values)}")
        amount = parse_positive(requested_amount, 'amount')
        currency_code = (currency_code or '').strip().upper()

        with transaction.atomic(using=self.using):
            try:
                currency = Currency.objects.using(self.using).get(code=currency_code)
            except Currency.DoesNotExist:
                raise NotFound(f"Currency {currency_code} not found")

            if not currency.offers(service_type):
                raise CurrencyUnavailable(f"{currency.code} is not available to {service_type} at the moment")
            if currency.min_transaction is not None and amount < currency.min_transaction:
                raise InvalidRequest(f"Minimum {service_type} amount for {currency.code} is {currency.min_transaction}")
            if currency.max_transaction is not None and amount > currency.max_transaction:
                raise InvalidRequest(f"Maximum {service_type} amount for {currency.code} is {currency.max_transaction}")

            now = timezone.now()
            day = timezone.localdate(now)
            entry = self._entries().create(
                ticket_number=self.next_ticket_number(day),
                queue_date=day,
                customer=customer,
                service_type=service_type,
                currency=currency,
                requested_amount=amount,
                status=QueueEntry.Status.WAITING,
                created_at=now,
            )

        logger.info(f"Ticket {entry.ticket_number} issued: {service_type} {amount} {currency.code}")
        return entry

    def list_active(self):
        return list(
            self._entries()
            .select_related('customer')
            .filter(status__in=QueueEntry.ACTIVE_STATUSES)
            .order_by('created_at', 'id')
        )

    def estimated_wait(self, entry):
        """Minutes until ``entry`` is likely to be called."""
        ahead = self._entries().filter(
            status=QueueEntry.Status.WAITING,
            created_at__lt=entry.created_at,
        ).count()
        return ahead * settings.ESTIMATED_WAIT_MINUTES_PER_CUSTOMER

    def claim_next(self, teller_id):
        """Move the oldest waiting entry to ``processing`` for ``teller_id``.

        Returns None when nobody is waiting. On PostgreSQL the candidate row is taken
        with FOR UPDATE SKIP LOCKED, so concurrent tellers pick different rows without
        blocking. The conditional UPDATE is the final arbiter on every backend: it only
        succeeds while the row is still ``waiting``.
        """
        for _ in range(MAX_CLAIM_ATTEMPTS):
            with transaction.atomic(using=self.using):
                candidate = (
                    self._entries()
                    .select_for_update(skip_locked=True)
                    .filter(status=QueueEntry.Status.WAITING)
                    .order_by('created_at', 'id')
                    .first()
                )
                if candidate is None:
                    return None

                called_at = timezone.now()
                claimed = self._entries().filter(
                    pk=candidate.pk,
                    status=QueueEntry.Status.WAITING,
                ).update(
                    status=QueueEntry.Status.PROCESSING,
                    called_at=called_at,
                    assigned_teller_id=teller_id,
                )
                if claimed:
                    candidate.status = QueueEntry.Status.PROCESSING
                    candidate.called_at = called_at
                    candidate.assigned_teller_id = teller_id
                    logger.info(f"Ticket {candidate.ticket_number} called by teller {teller_id}")
                    return candidate

            logger.debug(f"Ticket {candidate.ticket_number} was claimed concurrently, retrying")

        return None

    def cancel(self, queue_id, reason=''):
        """Close an open entry without a transaction (customer left, request denied)."""
        with transaction.atomic(using=self.using):
            try:
                entry = self._entries().select_for_update().get(pk=queue_id)
            except QueueEntry.DoesNotExist:
                raise NotFound(f"Queue entry {queue_id} not found")

            if not entry.can_transition(QueueEntry.Status.CANCELLED):
                raise InvalidQueueState(f"Ticket {entry.ticket_number} is already {entry.status}")

            entry.status = QueueEntry.Status.CANCELLED
            entry.completed_at = timezone.now()
            update_fields = ['status', 'completed_at']
            if reason:
                entry.notes = reason
                update_fields.append('notes')
            entry.save(using=self.using, update_fields=update_fields)

        logger.info(f"Ticket {entry.ticket_number} cancelled")
        return entry

    def cancel_stale(self, before_day=None):
        """Cancel open entries issued before ``before_day``; returns how many were closed."""
        before_day = before_day or timezone.localdate()
        cancelled = self._entries().filter(
            status__in=QueueEntry.ACTIVE_STATUSES,
            queue_date__lt=before_day,
        ).update(
            status=QueueEntry.Status.CANCELLED,
            completed_at=timezone.now(),
            notes='Closed at end of business day',
        )
        if cancelled:
            logger.info(f"Cancelled {cancelled} stale queue entries from before {before_day}")
        return cancelled
