"""
ascend.errors — Exception types raised by the engine and store
===============================================================
"""

from __future__ import annotations


class AscendError(Exception):
    """Base class for errors raised by Ascend itself."""


class InvalidAwardError(AscendError, ValueError):
    """An XP award was requested with a non-positive amount.

    Raised before the progress record is touched.
    """

    def __init__(self, user_id: int, amount: int) -> None:
        super().__init__(f"XP award for user {user_id} must be positive, got {amount!r}")
        self.user_id = user_id
        self.amount = amount


class PersistenceError(AscendError):
    """The progress snapshot could not be read from or written to storage."""
