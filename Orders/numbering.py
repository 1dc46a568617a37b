import secrets
import string
import time

_ALPHABET = string.ascii_uppercase + string.digits


def new_order_number(now=None):
    """SALE-<epoch millis>-<5 random chars>; sortable by creation time."""
    millis = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(5))
    return f"SALE-{millis}-{suffix}"
