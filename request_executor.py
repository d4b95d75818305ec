import os
import threading
import logging
from concurrent.futures import ThreadPoolExecutor
from google.cloud import pubsub_v1
from tenacity import Retrying, stop_after_delay, wait_random_exponential, retry_if_exception_type
from circuit_breaker import CircuitBreaker, TRANSIENT_EXCEPTIONS

CLIENTS = {
    'PublisherClient': pubsub_v1.PublisherClient,
    'SubscriberClient': pubsub_v1.SubscriberClient,
}

# Paged list methods and the response field holding the page's resources.
PAGED_METHODS = {
    'list_topic_subscriptions': 'subscriptions',
}

DEFAULT_MAX_WORKERS = 8


class RequestExecutor:
    """
    Runs gapic client calls off the caller's thread and reports each outcome
    to a `callback(err, *results)`.

    Plain methods complete with `(err, response)`. Paged methods complete with
    `(err, items, next_query, raw_page)`: with `auto_paginate` (the default)
    every page is drained and `next_query`/`raw_page` are None; without it only
    the first page is returned, and `next_query` is the request for the
    following page, or None on the last one.
    """
    def __init__(self, clients: dict | None = None, client_options: dict | None = None,
                 max_workers: int | None = None, retry_deadline: float = 10) -> None:
        self.logger = logging.getLogger('RequestExecutor')
        self._clients = dict(clients or {})
        self._client_options = client_options or {}
        if max_workers is None:
            try:
                max_workers = int(os.environ.get('PUBSUB_MAX_WORKERS', DEFAULT_MAX_WORKERS))
            except ValueError:
                max_workers = DEFAULT_MAX_WORKERS
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='pubsub-request')
        self._retry_deadline = retry_deadline
        self._breakers = {kind: CircuitBreaker(name=kind) for kind in CLIENTS}
        self._lock = threading.Lock()

    def get_client(self, kind: str):
        with self._lock:
            if kind not in self._clients:
                if kind not in CLIENTS:
                    raise ValueError(f'Unknown client kind: {kind}')
                self._clients[kind] = CLIENTS[kind](**self._client_options)
                self.logger.info(f'Created {kind}')
            return self._clients[kind]

    def request(self, client: str, method: str, req_opts: dict, gax_opts: dict | None, callback) -> None:
        gax_opts = dict(gax_opts or {})
        auto_paginate = gax_opts.pop('auto_paginate', None)
        auto_paginate = True if auto_paginate is None else bool(auto_paginate)
        self.logger.debug(f'Dispatching {client}.{method}: {req_opts}')

        future = self._pool.submit(self._invoke, client, method, dict(req_opts), gax_opts, auto_paginate)

        def on_done(done):
            err = done.exception()
            if err is not None:
                self.logger.debug(f'{client}.{method} failed: {err!r}')
                if method in PAGED_METHODS:
                    callback(err, None, None, None)
                else:
                    callback(err, None)
                return
            callback(None, *done.result())

        future.add_done_callback(on_done)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def _invoke(self, client: str, method: str, req_opts: dict, gax_opts: dict, auto_paginate: bool) -> tuple:
        fn = getattr(self.get_client(client), method)
        response = self._breakers[client].call(self._call_with_retry, fn, req_opts, gax_opts)
        if method not in PAGED_METHODS:
            return (response,)

        if auto_paginate:
            return list(response), None, None

        page = next(iter(response.pages), None)
        if page is None:
            return [], None, None
        items = list(getattr(page, PAGED_METHODS[method]))
        next_query = None
        if page.next_page_token:
            next_query = dict(req_opts, page_token=page.next_page_token)
        return items, next_query, page

    def _call_with_retry(self, fn, req_opts: dict, gax_opts: dict):
        retrying = Retrying(
            wait=wait_random_exponential(min=0.5, max=10),
            stop=stop_after_delay(self._retry_deadline),
            retry=retry_if_exception_type(TRANSIENT_EXCEPTIONS),
            before_sleep=lambda state: self.logger.warning(
                f'Retryable error {state.outcome.exception()!r}, trying again...'),
            reraise=True,
        )
        return retrying(fn, request=req_opts, **gax_opts)

