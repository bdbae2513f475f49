# bureau/views.py
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
import json
import logging
from .exceptions import BureauError, InvalidRequest
from .services import BranchWorkflow

logger = logging.getLogger(__name__)


def error_response(message, status):
    return JsonResponse({
        'success': False,
        'error': message
    }, status=status)


def parse_queue_id(value):
    """Accept a JSON integer or a string of ASCII digits; booleans and floats are refused."""
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise InvalidRequest('queue_id must be an integer')


class BranchView(View):
    """
    base for the branch JSON endpoints
    """

    # None: public, 'teller': any logged-in user, 'staff': administrators only
    access = None

    def get_workflow(self):
        return BranchWorkflow()

    def parse_body(self, request):
        if not request.body:
            return {}
        try:
            body = json.loads(request.body)
        except (ValueError, UnicodeDecodeError):
            raise InvalidRequest('Request body must be valid JSON')
        if not isinstance(body, dict):
            raise InvalidRequest('Request body must be a JSON object')
        return body

    def dispatch(self, request, *args, **kwargs):
        if self.access and not request.user.is_authenticated:
            return error_response('Authentication required', 401)
        if self.access == 'staff' and not request.user.is_staff:
            return error_response('Administrator access required', 403)

        try:
            return super().dispatch(request, *args, **kwargs)
        except BureauError as e:
            return error_response(str(e), e.http_status)
        except Exception as e:
            logger.error(f"Unhandled error on {request.method} {request.path}: {str(e)}", exc_info=True)
            return error_response(f'Server error: {str(e)}', 500)


@method_decorator(csrf_exempt, name='dispatch')
class JoinQueueView(BranchView):
    """
    register a customer at the kiosk and issue a ticket

    the kiosk is anonymous, so this is the only endpoint without CSRF protection
    """

    def post(self, request):
        body = self.parse_body(request)
        entry, estimated_wait = self.get_workflow().join_queue(
            full_name=body.get('full_name'),
            phone_number=body.get('phone_number', ''),
            id_type=body.get('id_type', ''),
            id_number=body.get('id_number'),
            service_type=body.get('transaction_type') or body.get('service_type'),
            currency_code=body.get('currency_code'),
            amount=body.get('amount', body.get('active_amount')),
        )
        return JsonResponse({
            'success': True,
            'message': 'Joined queue successfully',
            'data': {
                'ticket_number': entry.ticket_number,
                'estimated_wait': estimated_wait,
                'entry': entry.as_dict(),
            }
        }, status=201)


class ActiveQueueView(BranchView):
    """
    waiting and processing tickets, oldest first, for display boards
    """

    def get(self, request):
        entries = self.get_workflow().active_queue()
        return JsonResponse({
            'success': True,
            'data': [entry.as_dict(with_customer=True) for entry in entries]
        })


class CancelQueueEntryView(BranchView):
    access = 'teller'

    def post(self, request, queue_id):
        body = self.parse_body(request)
        entry = self.get_workflow().cancel(queue_id, request.user.pk, reason=body.get('reason', ''))
        return JsonResponse({
            'success': True,
            'message': 'Ticket cancelled',
            'data': entry.as_dict()
        })


class CallNextView(BranchView):
    """
    claim the oldest waiting ticket for the calling teller
    """
    access = 'teller'

    def post(self, request):
        entry = self.get_workflow().call_next(request.user.pk)
        if entry is None:
            # An empty queue is a normal state for the teller screen
            return JsonResponse({
                'success': True,
                'empty': True,
                'message': 'No customers in waiting queue',
                'data': None
            })

        return JsonResponse({
            'success': True,
            'empty': False,
            'message': 'Customer called',
            'data': entry.as_dict(with_customer=True)
        })


class ExecuteTransactionView(BranchView):
    """
    settle a ticket: stock, transaction record and queue status in one unit
    """
    access = 'teller'

    def post(self, request):
        body = self.parse_body(request)
        queue_id = parse_queue_id(body.get('queue_id'))

        record = self.get_workflow().execute_transaction(
            queue_id,
            request.user.pk,
            amount=body.get('actual_amount', body.get('amount')),
            rate=body.get('actual_rate', body.get('rate')),
        )
        return JsonResponse({
            'success': True,
            'message': 'Transaction successful',
            'data': record.as_dict()
        })


class TellerHistoryView(BranchView):
    access = 'teller'

    def get(self, request):
        records = self.get_workflow().teller_history(request.user.pk)
        return JsonResponse({
            'success': True,
            'data': [record.as_dict(with_customer=True) for record in records]
        })


class RateBoardView(BranchView):
    """
    buy/sell rates and availability for the public board
    """

    def get(self, request):
        board, source = self.get_workflow().rate_board()
        return JsonResponse({
            'success': True,
            'data': board,
            'source': source
        })


class InventoryView(BranchView):
    access = 'staff'

    def get(self, request):
        currencies = self.get_workflow().inventory()
        return JsonResponse({
            'success': True,
            'data': [currency.as_dict() for currency in currencies]
        })


class AdjustStockView(BranchView):
    access = 'staff'

    def post(self, request, currency_code):
        body = self.parse_body(request)
        new_stock = self.get_workflow().adjust_stock(currency_code.upper(), body.get('delta'), request.user.pk)
        return JsonResponse({
            'success': True,
            'data': {
                'currency_code': currency_code.upper(),
                'stock_amount': new_stock,
            }
        })


class NotificationsView(BranchView):
    access = 'staff'

    def get(self, request):
        notifications = self.get_workflow().notifications()
        return JsonResponse({
            'success': True,
            'data': [notification.as_dict() for notification in notifications]
        })
