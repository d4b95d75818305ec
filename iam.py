from errors import MisuseError
from util import promisify


class IAM:
    """
    Access-control handle for a single topic or subscription.

    All methods are dual mode: pass a callback or get a future back.
    """
    def __init__(self, pubsub, resource_name: str) -> None:
        self.pubsub = pubsub
        self.request = pubsub.request
        self.id = resource_name
        self.client = 'SubscriberClient' if '/subscriptions/' in resource_name else 'PublisherClient'

    @promisify
    def get_policy(self, gax_opts: dict | None = None, callback=None) -> None:
        self.request(
            client=self.client,
            method='get_iam_policy',
            req_opts={'resource': self.id},
            gax_opts=gax_opts,
            callback=callback,
        )

    @promisify
    def set_policy(self, policy, gax_opts: dict | None = None, callback=None) -> None:
        if policy is None:
            raise MisuseError('A policy object is required.')
        self.request(
            client=self.client,
            method='set_iam_policy',
            req_opts={'resource': self.id, 'policy': policy},
            gax_opts=gax_opts,
            callback=callback,
        )

    @promisify
    def test_permissions(self, permissions: str | list[str], gax_opts: dict | None = None, callback=None) -> None:
        if isinstance(permissions, str):
            permissions = [permissions]
        if not permissions:
            raise MisuseError('At least one permission must be tested.')

        def on_response(err, api_response=None):
            if err is not None:
                callback(err, None, api_response)
                return
            granted = set(api_response.permissions)
            callback(None, {permission: permission in granted for permission in permissions}, api_response)

        self.request(
            client=self.client,
            method='test_iam_permissions',
            req_opts={'resource': self.id, 'permissions': list(permissions)},
            gax_opts=gax_opts,
            callback=on_response,
        )
