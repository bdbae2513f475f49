from celery import shared_task
from django.utils import timezone
import logging
from .ticketing import TicketQueue

logger = logging.getLogger(__name__)


@shared_task
def cancel_stale_queue_entries():
    """
    Cancel tickets still open from previous business days.
    Scheduled shortly after midnight, when ticket numbers restart.
    """
    try:
        today = timezone.localdate()
        cancelled = TicketQueue().cancel_stale(before_day=today)
        logger.info(f"Stale ticket sweep before {today.isoformat()}: {cancelled} cancelled")
        return {'success': True, 'cancelled': cancelled}

    except Exception as e:
        logger.error(f"Error in cancel_stale_queue_entries: {str(e)}")
        raise
