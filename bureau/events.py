"""
Queue change topic.

Display boards and teller screens subscribe to the topic to learn about new
customers, calls, completions and cancellations. Publishing happens after the
database commit and is best-effort: a failed publish is logged, never raised, and
a message can be lost. Subscribers must treat the database as the source of truth.
"""

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.module_loading import import_string
import json
import logging
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

NEW_CUSTOMER = 'new_customer'
CALLED = 'called'
COMPLETED = 'completed'
CANCELLED = 'cancelled'


def encode_message(event, payload):
    return json.dumps({'event': event, 'data': payload}, cls=DjangoJSONEncoder)


class QueueEventPublisher:
    """Publishes ``{"event": ..., "data": ...}`` messages on the queue change topic."""

    def publish(self, event, payload):
        raise NotImplementedError


class RedisQueueEventPublisher(QueueEventPublisher):
    """Redis PUBLISH on ``QUEUE_EVENTS_CHANNEL``, through the django-redis connection pool."""

    def __init__(self, alias='default', channel=None):
        self.alias = alias
        self.channel = channel or settings.QUEUE_EVENTS_CHANNEL

    def _connection(self):
        from django_redis import get_redis_connection
        return get_redis_connection(self.alias)

    def publish(self, event, payload):
        message = encode_message(event, payload)
        try:
            receivers = self._connection().publish(self.channel, message)
        except RedisError as e:
            logger.warning(f"Failed to publish {event} on {self.channel}: {str(e)}")
            return False
        logger.debug(f"Published {event} to {receivers} subscribers")
        return True

    def subscribe(self):
        """Yield decoded messages from the channel until the connection closes."""
        pubsub = self._connection().pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(self.channel)
        try:
            for message in pubsub.listen():
                if message.get('type') != 'message':
                    continue
                data = message['data']
                if isinstance(data, bytes):
                    data = data.decode('utf-8')
                yield json.loads(data)
        finally:
            pubsub.close()


class InMemoryQueueEventPublisher(QueueEventPublisher):
    """Delivers messages to in-process subscribers and keeps them in ``published``."""

    def __init__(self):
        self.published = []
        self._subscribers = []

    def subscribe(self, callback):
        self._subscribers.append(callback)

    def publish(self, event, payload):
        message = json.loads(encode_message(event, payload))
        self.published.append(message)
        for callback in list(self._subscribers):
            try:
                callback(message)
            except Exception as e:
                logger.warning(f"Queue event subscriber failed on {event}: {str(e)}")
        return True


def get_publisher():
    return import_string(settings.QUEUE_EVENT_PUBLISHER)()
