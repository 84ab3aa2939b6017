"""
ceb.ids - Unique instance identifiers
"""

from collections.abc import Callable
from uuid import uuid4

from ceb.exceptions import InternalError

IdGenerator = Callable[[], str]


def generate_id() -> str:
    """Return a new opaque, unique instance ID."""
    return uuid4().hex


def new_instance_id(generator: IdGenerator = generate_id) -> str:
    """Generate an instance ID, reporting any failure as an InternalError."""
    try:
        return generator()
    except Exception as e:
        raise InternalError(f"failed to generate unique ID: {e}") from e
