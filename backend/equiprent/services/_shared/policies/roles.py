from __future__ import annotations

from collections.abc import Iterable


def is_authorized(required: Iterable[str] | None, presented: Iterable[str] | None) -> bool:
    """
    Role gate used by the routing layer.

    Allows when nothing is required; otherwise at least one presented role
    must be among the required ones.
    """
    needed = set(required or ())
    if not needed:
        return True
    return bool(needed.intersection(presented or ()))
