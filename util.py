import functools
import inspect

from google.cloud.pubsub_v1 import futures


def promisify(method):
    """
    Give an asynchronous operation its callback-or-future surface.

    The wrapped method is written once, in callback style, and always receives
    a `callback(err, *results)` keyword. Callers may pass:

    - `(callback)` or `(options, callback)`: the trailing callable is moved
      into the callback slot and nothing is returned.
    - `(options)` or nothing: a `Future` is returned instead. It resolves to
      the tuple of results the callback would have received, or fails with
      `err`.
    """
    signature = inspect.signature(method)

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        callback = kwargs.pop('callback', None)
        if callback is None and args and callable(args[-1]):
            callback = args[-1]
            args = args[:-1]

        # An explicit positional None in the callback slot means "no callback".
        bound = signature.bind_partial(self, *args, **kwargs)
        callback = callback or bound.arguments.pop('callback', None)
        args, kwargs = bound.args[1:], bound.kwargs

        if callback is not None:
            method(self, *args, callback=callback, **kwargs)
            return None

        future = futures.Future()

        def settle(err, *results):
            if err is not None:
                future.set_exception(err)
            else:
                future.set_result(results)

        method(self, *args, callback=settle, **kwargs)
        return future

    return wrapper
