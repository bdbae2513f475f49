from decimal import Decimal
from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, DatabaseError
from .models import Currency, ExchangeTransaction, Notification
import logging

logger = logging.getLogger(__name__)

# Branch default currency table (rates in local currency per foreign unit)
DEFAULT_CURRENCIES = [
    {'code': 'USD', 'name': 'US Dollar', 'flag': '🇺🇸', 'buy': '2520', 'sell': '2480', 'stock': '150000'},
    {'code': 'EUR', 'name': 'Euro', 'flag': '🇪🇺', 'buy': '2750', 'sell': '2700', 'stock': '80000'},
    {'code': 'GBP', 'name': 'British Pound', 'flag': '🇬🇧', 'buy': '3180', 'sell': '3120', 'stock': '45000'},
    {'code': 'AED', 'name': 'UAE Dirham', 'flag': '🇦🇪', 'buy': '686', 'sell': '675', 'stock': '200000'},
    {'code': 'SAR', 'name': 'Saudi Riyal', 'flag': '🇸🇦', 'buy': '672', 'sell': '660', 'stock': '0'},
    {'code': 'KES', 'name': 'Kenyan Shilling', 'flag': '🇰🇪', 'buy': '19.5', 'sell': '18.8', 'stock': '5000000'},
]


class DatabaseManager:
    """Read-side queries and reference data upkeep."""

    @staticmethod
    def save_currencies(currencies_data, using=DEFAULT_DB_ALIAS):
        """Upsert currency rates and stock."""
        try:
            for row in currencies_data:
                Currency.objects.using(using).update_or_create(
                    code=row['code'],
                    defaults={
                        'name': row['name'],
                        'flag_emoji': row.get('flag', ''),
                        'buy_rate': Decimal(str(row['buy'])),
                        'sell_rate': Decimal(str(row['sell'])),
                        'stock_amount': Decimal(str(row['stock'])),
                    }
                )
            return True
        except (DatabaseError, KeyError) as e:
            logger.error(f"Failed to save currencies: {str(e)}")
            return False

    @staticmethod
    def get_rate_board(using=DEFAULT_DB_ALIAS):
        """Public view of the currency table: rates and availability, no stock figures."""
        return [
            {
                'code': currency.code,
                'name': currency.name,
                'flag': currency.flag_emoji,
                'buy_rate': currency.buy_rate,
                'sell_rate': currency.sell_rate,
                'buy_available': currency.buy_available,
                'sell_available': currency.sell_available and currency.stock_amount > 0,
            }
            for currency in Currency.objects.using(using).order_by('code')
        ]

    @staticmethod
    def get_teller_history(teller_id, limit=None, using=DEFAULT_DB_ALIAS):
        """Most recent transactions executed by a teller, newest first."""
        limit = limit or settings.TELLER_HISTORY_LIMIT
        return list(
            ExchangeTransaction.objects.using(using)
            .select_related('customer')
            .filter(teller_id=teller_id)
            .order_by('-created_at', '-id')[:limit]
        )

    @staticmethod
    def get_notifications(recipient_role='admin', limit=50, using=DEFAULT_DB_ALIAS):
        return list(
            Notification.objects.using(using)
            .filter(recipient_role=recipient_role)
            .order_by('-created_at', '-id')[:limit]
        )
