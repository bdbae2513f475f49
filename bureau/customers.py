from django.db import DEFAULT_DB_ALIAS
import logging
from .exceptions import InvalidRequest
from .models import Customer

logger = logging.getLogger(__name__)


class CustomerDirectory:
    """Customers deduplicated by identity document number."""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def find_or_create(self, document_number, full_name, phone='', id_type=''):
        """Return the customer holding ``document_number``, creating it on first sighting.

        Relies on the unique constraint on ``id_number``: when two admissions race to
        create the same customer, ``get_or_create`` catches the IntegrityError and
        returns the row the winner inserted.
        """
        document_number = (document_number or '').strip()
        full_name = (full_name or '').strip()
        if not document_number:
            raise InvalidRequest('id_number is required')
        if not full_name:
            raise InvalidRequest('full_name is required')

        customer, created = Customer.objects.using(self.using).get_or_create(
            id_number=document_number,
            defaults={
                'full_name': full_name,
                'phone_number': (phone or '').strip(),
                'id_type': (id_type or '').strip(),
            },
        )
        if created:
            logger.info(f"Registered new customer {customer.pk} ({customer.id_type})")
        return customer

    def flag(self, customer):
        if customer.kyc_status == Customer.KycStatus.FLAGGED:
            return customer
        customer.kyc_status = Customer.KycStatus.FLAGGED
        customer.save(using=self.using, update_fields=['kyc_status'])
        logger.warning(f"Customer {customer.pk} flagged for KYC review")
        return customer
