from django.db import DEFAULT_DB_ALIAS, transaction
import logging
from . import audit, events
from .cache_utils import RATE_BOARD_CACHE_KEY, TTLCacheManager
from .customers import CustomerDirectory
from .db_utils import DatabaseManager
from .ledger import CurrencyLedger
from .money import parse_decimal
from .settlement import SettlementEngine
from .ticketing import TicketQueue

logger = logging.getLogger(__name__)


class BranchWorkflow:
    """Entry points used by the HTTP layer.

    Each operation commits its own database work first, then writes the audit record
    and publishes the queue change event. Neither of those follow-ups can undo the
    committed operation.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS, publisher=None):
        self.using = using
        self.publisher = publisher or events.get_publisher()
        self.ledger = CurrencyLedger(using=using)
        self.directory = CustomerDirectory(using=using)
        self.queue = TicketQueue(using=using)
        self.engine = SettlementEngine(using=using, ledger=self.ledger, directory=self.directory)

    def join_queue(self, full_name, phone_number, id_type, id_number, service_type, currency_code, amount):
        """Register a walk-in customer and issue a ticket."""
        with transaction.atomic(using=self.using):
            customer = self.directory.find_or_create(id_number, full_name, phone_number, id_type)
            entry = self.queue.admit(customer, service_type, currency_code, amount)
        estimated_wait = self.queue.estimated_wait(entry)

        audit.log_audit(None, audit.QUEUE_JOIN, {
            'ticket': entry.ticket_number,
            'customer_id': customer.pk,
        }, using=self.using)
        self.publisher.publish(events.NEW_CUSTOMER, entry.as_dict(with_customer=True))
        return entry, estimated_wait

    def active_queue(self):
        return self.queue.list_active()

    def call_next(self, teller_id):
        """Claim the next waiting ticket for a teller; None when the queue is empty."""
        entry = self.queue.claim_next(teller_id)
        if entry is None:
            return None

        audit.log_audit(teller_id, audit.QUEUE_CALL, {'ticket': entry.ticket_number}, using=self.using)
        self.publisher.publish(events.CALLED, entry.as_dict(with_customer=True))
        return entry

    def execute_transaction(self, queue_id, teller_id, amount=None, rate=None):
        record = self.engine.settle(queue_id, teller_id, amount=amount, rate=rate)

        audit.log_audit(teller_id, audit.TRANSACTION_EXECUTE, {
            'trans_id': record.pk,
            'reference': record.reference,
            'ticket': record.queue_entry.ticket_number,
            'amount': record.amount_foreign,
            'currency': record.currency_id,
            'suspicious': record.is_suspicious,
        }, using=self.using)
        TTLCacheManager.invalidate(RATE_BOARD_CACHE_KEY)
        self.publisher.publish(events.COMPLETED, {'queue_id': record.queue_entry_id})
        return record

    def cancel(self, queue_id, user_id, reason=''):
        entry = self.queue.cancel(queue_id, reason=reason)

        audit.log_audit(user_id, audit.QUEUE_CANCEL, {
            'ticket': entry.ticket_number,
            'reason': reason,
        }, using=self.using)
        self.publisher.publish(events.CANCELLED, {'queue_id': entry.pk})
        return entry

    def teller_history(self, teller_id, limit=None):
        return DatabaseManager.get_teller_history(teller_id, limit=limit, using=self.using)

    def rate_board(self):
        cache_timeout = TTLCacheManager.get_cache_timeout('rate_board')
        cached = TTLCacheManager.get_cached_data(RATE_BOARD_CACHE_KEY)
        if cached is not None:
            return cached, 'cache'

        board = DatabaseManager.get_rate_board(using=self.using)
        TTLCacheManager.set_cached_data(RATE_BOARD_CACHE_KEY, board, cache_timeout)
        return board, 'database'

    def inventory(self):
        return self.ledger.inventory()

    def adjust_stock(self, currency_code, delta, user_id):
        """Manual stock correction by an administrator (cash delivery, count difference)."""
        delta = parse_decimal(delta, 'delta')
        new_stock = self.ledger.adjust_stock(currency_code, delta)

        audit.log_audit(user_id, audit.STOCK_ADJUST, {
            'currency': currency_code,
            'delta': delta,
            'new_stock': new_stock,
        }, using=self.using)
        TTLCacheManager.invalidate(RATE_BOARD_CACHE_KEY)
        return new_stock

    def notifications(self):
        return DatabaseManager.get_notifications(using=self.using)
