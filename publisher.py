import json
import logging
from google.cloud import pubsub_v1
from google.api_core.retry import Retry, if_exception_type
from circuit_breaker import TRANSIENT_EXCEPTIONS

DEFAULT_BATCHING = {
    'max_bytes': 1024 * 1024 * 5,
    'max_messages': 1000,
    'max_milliseconds': 100,
}


class Publisher:
    """
    Publishes messages to one topic. Batching itself is done by the
    `pubsub_v1.PublisherClient` built from the batching options.
    """
    def __init__(self, topic, options: dict | None = None, client: pubsub_v1.PublisherClient | None = None) -> None:
        self.logger = logging.getLogger('Publisher')
        self.topic = topic
        batching = dict(DEFAULT_BATCHING)
        batching.update((options or {}).get('batching') or {})
        self.settings = {'batching': batching}
        self._client = client

    @property
    def batch_settings(self) -> pubsub_v1.types.BatchSettings:
        batching = self.settings['batching']
        return pubsub_v1.types.BatchSettings(
            max_bytes=batching['max_bytes'],
            max_latency=batching['max_milliseconds'] / 1000,
            max_messages=batching['max_messages'],
        )

    @property
    def client(self) -> pubsub_v1.PublisherClient:
        if self._client is None:
            self._client = pubsub_v1.PublisherClient(batch_settings=self.batch_settings)
        return self._client

    def publish(self, data: str | bytes | dict | list, attributes: dict | None = None, callback=None):
        """
        Queue a message for publishing. Returns the client's future, whose
        result is the server-assigned message ID; when `callback` is given it
        is called with `(err, message_id)` once the batch is sent.
        """
        future = self.client.publish(
            self.topic.name,
            self._serialize_message(data),
            retry=self._retry_strategy(),
            **(attributes or {})
        )

        def on_published(done):
            err = done.exception()
            if err is not None:
                self.logger.error(f'Failed to publish message to {self.topic.name}: {err!r}')
                if callback is not None:
                    callback(err, None)
                return
            self.logger.info(f'Message published with ID: {done.result()}')
            if callback is not None:
                callback(None, done.result())

        future.add_done_callback(on_published)
        return future

    def _retry_strategy(self) -> Retry:
        return Retry(
            predicate=if_exception_type(*TRANSIENT_EXCEPTIONS),
            initial=0.1,
            maximum=5,
            multiplier=2,
            timeout=10,
            on_error=lambda e: self.logger.warning(f"Retryable error {e}, trying again..."),
        )

    def _serialize_message(self, message: str | bytes | dict | list) -> bytes:
        if isinstance(message, bytes):
            return message
        if isinstance(message, (dict, list)):
            return json.dumps(message).encode("utf-8")
        if isinstance(message, str):
            return message.encode("utf-8")
        raise TypeError(f'Message must be bytes, a string or a JSON, got {type(message)}')

    def __repr__(self) -> str:
        return f'Publisher(topic={self.topic.name!r})'
