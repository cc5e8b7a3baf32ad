# errors.py
# Exception types raised by the scheduling core.


class WatchbillError(Exception):
    """Base class for watchbill errors."""


class InvalidInput(WatchbillError, ValueError):
    """Malformed time/instant input, or a reference to an unknown slot or member."""


class InvalidPolicy(WatchbillError, ValueError):
    """A rotation policy that cannot produce a complete cycle."""
