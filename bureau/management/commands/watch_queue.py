from django.core.management.base import BaseCommand
import logging
from bureau.events import RedisQueueEventPublisher

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Subscribe to the queue change topic and print every event.'

    def add_arguments(self, parser):
        parser.add_argument('--channel', default=None, help='Override QUEUE_EVENTS_CHANNEL.')

    def handle(self, *args, **options):
        subscriber = RedisQueueEventPublisher(channel=options['channel'])
        self.stdout.write(f"Listening on {subscriber.channel}")
        try:
            for message in subscriber.subscribe():
                data = message.get('data') or {}
                ticket = data.get('ticket_number') or data.get('queue_id')
                self.stdout.write(f"{message.get('event')}: {ticket}")
        except KeyboardInterrupt:
            logger.info('Queue watcher stopped')
