"""Unique id generation for scope names and listener ids."""

import itertools

_counter = itertools.count(1)


def unique_id(prefix: str) -> str:
    """Return an id never returned before in this process."""
    return f"{prefix}_{next(_counter)}"
