import logging
from google.cloud import pubsub_v1
from iam import IAM


class Subscription:
    """
    Local handle for a Pub/Sub subscription. Building one runs no requests.
    """
    def __init__(self, pubsub, name: str, options: dict | None = None) -> None:
        options = options or {}
        self.logger = logging.getLogger('Subscription')
        self.pubsub = pubsub
        self.name = Subscription.format_name(pubsub.project_id, name)
        # Owning Topic handle, or a topic name when built from a bare string.
        self.topic = options.get('topic')
        self.flow_control = dict(options.get('flow_control') or {})
        self.iam = IAM(pubsub, self.name)
        self.metadata = None

    @staticmethod
    def format_name(project_id: str, name: str) -> str:
        if '/' in name:
            return name
        return f'projects/{project_id}/subscriptions/{name}'

    def listen(self, callback):
        """
        Start a streaming pull; `callback` receives each message and must ack
        or nack it. Returns the streaming pull future, cancel it to stop.
        """
        client = self.pubsub.get_client('SubscriberClient')
        flow_control = pubsub_v1.types.FlowControl(**self.flow_control)
        future_listener = client.subscribe(self.name, callback=callback, flow_control=flow_control)
        self.logger.info(f'Listening on `{self.name}`...')
        return future_listener

    def __repr__(self) -> str:
        return f'Subscription(name={self.name!r})'


def _run():
    import os
    from pubsub_client import PubSub
    project_id = os.environ.get("PROJECT_ID")
    topic_id = os.environ.get("TOPIC_ID")
    subscription_id = f'{topic_id}-sub' # Assumes the subscription name will be `<topic_id>-sub`
    pubsub = PubSub(project_id=project_id)
    subscription = pubsub.topic(topic_id).subscription(subscription_id, {'flow_control': {'max_messages': 2}})

    def callback(message) -> None:
        subscription.logger.info(f'Message received with:\nMessage ID: {message.message_id}\nMessage Data: {message.data.decode("utf-8")}\nMessage Attributes: {message.attributes}')
        message.ack()

    future_listener = subscription.listen(callback)
    try:
        future_listener.result()
    except KeyboardInterrupt:
        subscription.logger.info(f'Stopping subscriber...')
        future_listener.cancel()
    except Exception:
        subscription.logger.exception(f'Unexpected error listening on {subscription.name}.')
        raise
    finally:
        pubsub.close()

if __name__ == "__main__":
    _run()
