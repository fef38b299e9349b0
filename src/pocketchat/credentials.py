"""
Credential handling for PocketChat.

Passwords are stored and compared as plain text so that accounts created
by earlier releases keep authenticating. Every comparison goes through
:func:`verify_password` and every stored value through
:func:`prepare_password`, so a hashed scheme only has to change this module.
"""

import hmac


def prepare_password(password: str) -> str:
    """Return the value persisted in ``users.password`` for ``password``."""
    return password


def verify_password(stored: str, supplied: str) -> bool:
    """
    Check a supplied password against the stored value.

    Args:
        stored: Value read from ``users.password``.
        supplied: Password entered by the user.

    Returns:
        True on an exact match.
    """
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))
