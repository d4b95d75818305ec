import os
import logging
from errors import MisuseError
from request_executor import RequestExecutor
from subscriber import Subscription
from topic_handler import Topic
from util import promisify


class PubSub:
    """
    Owning context for topic and subscription handles. Holds the project id
    and the request executor every handle sends its RPCs through.
    """
    def __init__(self, project_id: str | None = None, executor: RequestExecutor | None = None,
                 client_options: dict | None = None) -> None:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        self.logger = logging.getLogger('PubSub')
        self.project_id = project_id or os.environ.get('PROJECT_ID') or os.environ.get('GOOGLE_CLOUD_PROJECT')
        if not self.project_id:
            raise MisuseError('A project ID is required (pass project_id or set PROJECT_ID).')
        self.executor = executor or RequestExecutor(client_options=client_options)

    def request(self, client: str, method: str, req_opts: dict, gax_opts: dict | None = None, callback=None) -> None:
        self.executor.request(client, method, req_opts, gax_opts, callback)

    def get_client(self, kind: str):
        return self.executor.get_client(kind)

    def topic(self, name: str) -> Topic:
        if not name:
            raise MisuseError('A name must be specified for a topic.')
        return Topic(self, name)

    def subscription(self, name: str, options: dict | None = None) -> Subscription:
        if not name:
            raise MisuseError('A name must be specified for a subscription.')
        return Subscription(self, name, options)

    @promisify
    def create_topic(self, name: str, gax_opts: dict | None = None, callback=None) -> None:
        topic = self.topic(name)

        def on_response(err, api_response=None):
            if err is not None:
                callback(err, None, api_response)
                return
            topic.metadata = api_response
            self.logger.info(f'Topic created: {topic.name}')
            callback(None, topic, api_response)

        self.request(
            client='PublisherClient',
            method='create_topic',
            req_opts={'name': topic.name},
            gax_opts=gax_opts,
            callback=on_response,
        )

    @promisify
    def create_subscription(self, topic: Topic | str, name: str, options: dict | None = None, callback=None) -> None:
        """
        Create a subscription to `topic`.

        `options` fields other than `gax_opts` and `flow_control` are sent as
        fields of the Subscription resource (e.g. `ack_deadline_seconds`).
        Completes with `(err, subscription, api_response)`.
        """
        if not name:
            raise MisuseError('A name must be specified for a subscription.')
        if isinstance(topic, str):
            topic = self.topic(topic)

        options = dict(options or {})
        gax_opts = options.pop('gax_opts', None)
        flow_control = options.pop('flow_control', None)
        subscription = self.subscription(name, {'topic': topic, 'flow_control': flow_control})

        def on_response(err, api_response=None):
            if err is not None:
                callback(err, None, api_response)
                return
            subscription.metadata = api_response
            self.logger.info(f'Subscription created: {subscription.name}')
            callback(None, subscription, api_response)

        self.request(
            client='SubscriberClient',
            method='create_subscription',
            req_opts=dict(options, name=subscription.name, topic=topic.name),
            gax_opts=gax_opts,
            callback=on_response,
        )

    def close(self) -> None:
        self.executor.shutdown()
