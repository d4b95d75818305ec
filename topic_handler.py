import logging
from errors import is_not_found
from iam import IAM
from paginator import streamify
from publisher import Publisher
from util import promisify

"""
- A Topic is a local handle: building one never talks to Pub/Sub
- Remote existence is only established by `create` and checked by `exists`/`get`
- `delete` removes the remote topic but leaves this handle (and its cached metadata) usable
- Every remote operation takes an optional callback; without one it returns a Future
"""
class Topic:
    def __init__(self, pubsub, name: str):
        self.logger = logging.getLogger('Topic')
        self.name = Topic.format_name(pubsub.project_id, name)
        self.parent = self.pubsub = pubsub
        self.request = pubsub.request
        self.iam = IAM(pubsub, self.name)
        # Last successful get_topic response; concurrent fetches are last-completed-wins.
        self.metadata = None

    @staticmethod
    def format_name(project_id: str, name: str) -> str:
        if '/' in name:
            return name
        return f'projects/{project_id}/topics/{name}'

    @promisify
    def create(self, gax_opts: dict | None = None, callback=None) -> None:
        self.pubsub.create_topic(self.name, gax_opts or {}, callback)

    @promisify
    def create_subscription(self, name: str, options: dict | None = None, callback=None) -> None:
        self.pubsub.create_subscription(self, name, options or {}, callback)

    @promisify
    def delete(self, gax_opts: dict | None = None, callback=None) -> None:
        self.request(
            client='PublisherClient',
            method='delete_topic',
            req_opts={'topic': self.name},
            gax_opts=gax_opts,
            callback=callback,
        )

    @promisify
    def exists(self, gax_opts: dict | None = None, callback=None) -> None:
        def on_metadata(err, api_response=None):
            if err is None:
                callback(None, True)
                return
            if is_not_found(err):
                callback(None, False)
                return
            callback(err)

        self.get_metadata(gax_opts or {}, on_metadata)

    @promisify
    def get(self, gax_opts: dict | None = None, callback=None) -> None:
        gax_opts = dict(gax_opts or {})
        auto_create = bool(gax_opts.pop('auto_create', False))

        def on_metadata(err, api_response=None):
            if err is None:
                callback(None, self, api_response)
                return
            if not is_not_found(err) or not auto_create:
                callback(err, None, api_response)
                return
            self.logger.info(f'Topic {self.name} not found, creating it')
            self.create(gax_opts, callback)

        self.get_metadata(gax_opts, on_metadata)

    @promisify
    def get_metadata(self, gax_opts: dict | None = None, callback=None) -> None:
        def on_response(err, api_response=None):
            if err is None:
                self.metadata = api_response
            callback(err, api_response)

        self.request(
            client='PublisherClient',
            method='get_topic',
            req_opts={'topic': self.name},
            gax_opts=gax_opts,
            callback=on_response,
        )

    @promisify
    def get_subscriptions(self, options: dict | None = None, callback=None) -> None:
        """
        List the subscriptions attached to this topic as `Subscription` handles.

        `options` fields become request fields (e.g. `page_size`,
        `page_token`), except `auto_paginate` and `gax_opts` which control the
        call itself. Completes with `(err, subscriptions, next_query, raw_page)`;
        the last two are only set when `auto_paginate` is False.
        """
        options = dict(options or {})
        req_opts = dict(options, topic=self.name)
        req_opts.pop('gax_opts', None)
        req_opts.pop('auto_paginate', None)
        gax_opts = {'auto_paginate': options.get('auto_paginate')}
        gax_opts.update(options.get('gax_opts') or {})

        def on_response(err, subscriptions=None, *rest):
            # The API only returns subscription names.
            if subscriptions:
                subscriptions = [self.subscription(name) for name in subscriptions]
            callback(err, subscriptions, *rest)

        self.request(
            client='PublisherClient',
            method='list_topic_subscriptions',
            req_opts=req_opts,
            gax_opts=gax_opts,
            callback=on_response,
        )

    get_subscriptions_stream = streamify('get_subscriptions')

    def publisher(self, options: dict | None = None) -> Publisher:
        return Publisher(self, options)

    def subscription(self, name: str, options: dict | None = None):
        options = dict(options or {})
        options['topic'] = self
        return self.pubsub.subscription(name, options)

    def __repr__(self) -> str:
        return f'Topic(name={self.name!r})'


def _run():
    import os
    from pubsub_client import PubSub
    project_id = os.environ.get("PROJECT_ID")
    topic_id = os.environ.get("TOPIC_ID")
    # topic_id = f'{os.environ.get("TOPIC_ID")}-dlq' # To create dead-letter topic
    pubsub = PubSub(project_id=project_id)
    try:
        topic, _ = pubsub.topic(topic_id).get({'auto_create': True}).result(timeout=30)
        print(f'Topic path: {topic.name}')
    except Exception:
        logging.getLogger('Topic').exception(f'Unexpected error getting or creating topic {topic_id}')
        raise
    finally:
        pubsub.close()

if __name__ == "__main__":
    _run()
