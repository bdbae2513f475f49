from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class ServiceType(models.TextChoices):
    BUY = 'buy', 'Buy'  # customer sells foreign currency to the branch
    SELL = 'sell', 'Sell'  # customer buys foreign currency from the branch


class Currency(models.Model):
    """Foreign currency held by the branch, with its rates and stock."""
    code = models.CharField(max_length=3, unique=True, primary_key=True)
    name = models.CharField(max_length=100)
    flag_emoji = models.CharField(max_length=16, blank=True, default='')
    buy_rate = models.DecimalField(max_digits=18, decimal_places=6)
    sell_rate = models.DecimalField(max_digits=18, decimal_places=6)
    stock_amount = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal('0'))
    low_stock_threshold = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal('1000'))
    buy_available = models.BooleanField(default=True)
    sell_available = models.BooleanField(default=True)
    min_transaction = models.DecimalField(max_digits=20, decimal_places=2, null=True, blank=True)
    max_transaction = models.DecimalField(max_digits=20, decimal_places=2, null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'currencies'
        verbose_name_plural = 'currencies'
        ordering = ['code']
        constraints = [
            models.CheckConstraint(condition=models.Q(stock_amount__gte=0), name='currency_stock_non_negative'),
            models.CheckConstraint(condition=models.Q(buy_rate__gt=0, sell_rate__gt=0), name='currency_rates_positive'),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def offers(self, service_type):
        if service_type == ServiceType.BUY:
            return self.buy_available
        return self.sell_available

    def as_dict(self):
        return {
            'code': self.code,
            'name': self.name,
            'flag': self.flag_emoji,
            'buy_rate': self.buy_rate,
            'sell_rate': self.sell_rate,
            'stock_amount': self.stock_amount,
            'low_stock_threshold': self.low_stock_threshold,
            'buy_available': self.buy_available,
            'sell_available': self.sell_available,
            'min_transaction': self.min_transaction,
            'max_transaction': self.max_transaction,
        }


class Customer(models.Model):
    """Walk-in customer, keyed by identity document number."""

    class KycStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        VERIFIED = 'verified', 'Verified'
        FLAGGED = 'flagged', 'Flagged'

    id_number = models.CharField(max_length=64, unique=True)
    full_name = models.CharField(max_length=200)
    phone_number = models.CharField(max_length=32, blank=True, default='')
    id_type = models.CharField(max_length=32, blank=True, default='')
    kyc_status = models.CharField(max_length=16, choices=KycStatus.choices, default=KycStatus.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'customers'

    def __str__(self):
        return f"{self.full_name} ({self.id_type} {self.id_number})"

    def as_dict(self):
        return {
            'id': self.pk,
            'full_name': self.full_name,
            'phone_number': self.phone_number,
            'id_type': self.id_type,
            'id_number': self.id_number,
            'kyc_status': self.kyc_status,
        }


class TicketSequence(models.Model):
    """Number of tickets issued on a calendar day."""
    day = models.DateField(primary_key=True)
    issued = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'ticket_sequences'

    def __str__(self):
        return f"{self.day}: {self.issued}"


class QueueEntry(models.Model):
    """One customer's place in line, with the transaction they asked for."""

    class Status(models.TextChoices):
        WAITING = 'waiting', 'Waiting'
        PROCESSING = 'processing', 'Processing'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    TRANSITIONS = {
        Status.WAITING: {Status.PROCESSING, Status.COMPLETED, Status.CANCELLED},
        Status.PROCESSING: {Status.COMPLETED, Status.CANCELLED},
        Status.COMPLETED: set(),
        Status.CANCELLED: set(),
    }
    ACTIVE_STATUSES = (Status.WAITING, Status.PROCESSING)

    ticket_number = models.CharField(max_length=16)
    queue_date = models.DateField(default=timezone.localdate)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='queue_entries')
    service_type = models.CharField(max_length=4, choices=ServiceType.choices)
    currency = models.ForeignKey(Currency, on_delete=models.PROTECT, related_name='queue_entries')
    requested_amount = models.DecimalField(max_digits=20, decimal_places=2)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.WAITING)
    created_at = models.DateTimeField(default=timezone.now)
    called_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    assigned_teller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='queue_entries',
    )
    notes = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'queue_entries'
        verbose_name_plural = 'queue entries'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='queue_status_created_idx'),
        ]
        constraints = [
            models.UniqueConstraint(fields=['queue_date', 'ticket_number'], name='unique_ticket_per_day'),
        ]

    def __str__(self):
        return f"{self.ticket_number} ({self.status})"

    @property
    def is_terminal(self):
        return not self.TRANSITIONS[self.status]

    def can_transition(self, to_status):
        return to_status in self.TRANSITIONS[self.status]

    def as_dict(self, with_customer=False):
        data = {
            'id': self.pk,
            'ticket_number': self.ticket_number,
            'status': self.status,
            'service_type': self.service_type,
            'currency_code': self.currency_id,
            'requested_amount': self.requested_amount,
            'created_at': self.created_at,
            'called_at': self.called_at,
            'completed_at': self.completed_at,
            'assigned_teller_id': self.assigned_teller_id,
        }
        if with_customer:
            data['customer'] = self.customer.as_dict()
        return data


class ExchangeTransaction(models.Model):
    """Settled exchange, a snapshot of the terms applied at settlement time."""
    reference = models.CharField(max_length=40, unique=True)
    queue_entry = models.OneToOneField(QueueEntry, on_delete=models.PROTECT, related_name='transaction')
    teller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='transactions')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='transactions')
    transaction_type = models.CharField(max_length=4, choices=ServiceType.choices)
    currency = models.ForeignKey(Currency, on_delete=models.PROTECT, related_name='transactions')
    amount_foreign = models.DecimalField(max_digits=20, decimal_places=2)
    exchange_rate = models.DecimalField(max_digits=18, decimal_places=6)
    amount_local = models.DecimalField(max_digits=24, decimal_places=2)
    is_suspicious = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['teller', '-created_at'], name='transaction_teller_recent_idx'),
        ]

    def __str__(self):
        return f"{self.reference}: {self.transaction_type} {self.amount_foreign} {self.currency_id}"

    def as_dict(self, with_customer=False):
        data = {
            'id': self.pk,
            'reference': self.reference,
            'queue_id': self.queue_entry_id,
            'teller_id': self.teller_id,
            'customer_id': self.customer_id,
            'type': self.transaction_type,
            'currency_code': self.currency_id,
            'amount_foreign': self.amount_foreign,
            'exchange_rate': self.exchange_rate,
            'amount_local': self.amount_local,
            'is_suspicious': self.is_suspicious,
            'created_at': self.created_at,
        }
        if with_customer:
            data['customer_name'] = self.customer.full_name
        return data


class Notification(models.Model):
    """Operator-facing alert, e.g. low stock."""

    LOW_CASH = 'low_cash'

    type = models.CharField(max_length=32)
    message = models.TextField()
    recipient_role = models.CharField(max_length=32, default='admin')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"[{self.type}] {self.message}"

    def as_dict(self):
        return {
            'id': self.pk,
            'type': self.type,
            'message': self.message,
            'recipient_role': self.recipient_role,
            'created_at': self.created_at,
        }


class AuditLog(models.Model):
    """Record of a privileged or business-critical action."""
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
    )
    action = models.CharField(max_length=64)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
        ]

    def __str__(self):
        return f"{self.action} by {self.user_id or 'system'}"
