from django.core.serializers.json import DjangoJSONEncoder
from django.db import DEFAULT_DB_ALIAS, DatabaseError
import json
import logging
from .models import AuditLog

logger = logging.getLogger(__name__)

QUEUE_JOIN = 'QUEUE_JOIN'
QUEUE_CALL = 'QUEUE_CALL'
QUEUE_CANCEL = 'QUEUE_CANCEL'
TRANSACTION_EXECUTE = 'TRANSACTION_EXECUTE'
STOCK_ADJUST = 'STOCK_ADJUST'


def log_audit(user_id, action, details=None, using=DEFAULT_DB_ALIAS):
    """Record a critical system or user action.

    Called after the business operation has committed; a failure here is logged
    and does not undo that operation.
    """
    # Decimals and datetimes are stored as strings
    details = json.loads(json.dumps(details or {}, cls=DjangoJSONEncoder))
    try:
        return AuditLog.objects.using(using).create(user_id=user_id, action=action, details=details)
    except DatabaseError as e:
        logger.error(f"Audit logging failed for {action}: {str(e)}")
        return None
