from collections import namedtuple

import pytest

from pubsub_client import PubSub

Call = namedtuple('Call', 'client method req_opts gax_opts')


class FakeExecutor:
    """Completes every request synchronously with a queued outcome."""

    def __init__(self):
        self.calls = []
        self.outcomes = {}
        self.clients = {}

    def respond(self, method, *outcome):
        self.outcomes.setdefault(method, []).append(outcome)

    def request(self, client, method, req_opts, gax_opts, callback):
        self.calls.append(Call(client, method, req_opts, gax_opts))
        callback(*self.outcomes[method].pop(0))

    def methods(self):
        return [call.method for call in self.calls]

    def get_client(self, kind):
        return self.clients[kind]

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def pubsub(executor):
    return PubSub(project_id='demo', executor=executor)


@pytest.fixture
def topic(pubsub):
    return pubsub.topic('t')
