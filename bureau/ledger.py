from django.db import DEFAULT_DB_ALIAS, transaction
import logging
from .exceptions import InsufficientStock, InvalidRequest, NotFound
from .models import Currency, ServiceType

logger = logging.getLogger(__name__)


class CurrencyLedger:
    """Per-currency rates and stock, with locked read-modify-write of the stock balance.

    Every method that locks a row must run inside the caller's ``transaction.atomic``
    block on the same database alias; the lock is held until that block exits.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def lock(self, currency_code):
        """Return the currency row under an exclusive row lock."""
        try:
            return Currency.objects.using(self.using).select_for_update().get(code=currency_code)
        except Currency.DoesNotExist:
            raise NotFound(f"Currency {currency_code} not found")

    def get_rates(self, currency_code):
        with transaction.atomic(using=self.using):
            currency = self.lock(currency_code)
        return {
            'buy_rate': currency.buy_rate,
            'sell_rate': currency.sell_rate,
            'stock': currency.stock_amount,
            'low_stock_threshold': currency.low_stock_threshold,
        }

    @staticmethod
    def rate_for(currency, service_type):
        if service_type == ServiceType.BUY:
            return currency.buy_rate
        if service_type == ServiceType.SELL:
            return currency.sell_rate
        raise InvalidRequest(f"Unknown service type: {service_type}")

    @staticmethod
    def stock_delta(service_type, amount):
        """Signed stock change: buying foreign currency adds to stock, selling it removes."""
        if service_type == ServiceType.BUY:
            return amount
        if service_type == ServiceType.SELL:
            return -amount
        raise InvalidRequest(f"Unknown service type: {service_type}")

    def apply_delta(self, currency, delta):
        """Write ``stock + delta`` to an already locked currency row.

        Raises InsufficientStock before writing anything if the balance would go negative.
        """
        new_stock = currency.stock_amount + delta
        if new_stock < 0:
            raise InsufficientStock(currency.code, currency.stock_amount, -delta)

        currency.stock_amount = new_stock
        currency.save(using=self.using, update_fields=['stock_amount', 'updated_at'])
        return new_stock

    def adjust_stock(self, currency_code, delta):
        """Apply a signed delta to a currency's stock and return the new balance."""
        with transaction.atomic(using=self.using):
            currency = self.lock(currency_code)
            new_stock = self.apply_delta(currency, delta)

        logger.info(f"Stock for {currency_code} adjusted by {delta}, now {new_stock}")
        return new_stock

    def inventory(self):
        return list(Currency.objects.using(self.using).order_by('code'))
