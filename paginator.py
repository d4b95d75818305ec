def streamify(method_name: str):
    """
    Build a lazy variant of a paged listing method.

    The returned method is a generator yielding one resource at a time. Pages
    are requested with `auto_paginate` off, and the next page is only
    requested once the consumer has taken every item of the current one, so
    breaking out of the loop (or closing the generator) schedules no further
    requests.
    """
    def stream(self, options: dict | None = None):
        query = dict(options or {})
        query['auto_paginate'] = False
        method = getattr(self, method_name)

        while query is not None:
            items, next_query, _ = method(query).result()
            yield from items or []
            query = dict(query, **next_query) if next_query else None

    stream.__name__ = f'{method_name}_stream'
    stream.__doc__ = f'Lazily iterate every result of `{method_name}` across pages.'
    return stream
