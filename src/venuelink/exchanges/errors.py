"""Exception taxonomy shared by the exchange base and venue adapters."""

from __future__ import annotations


class ExchangeError(Exception):
    """Base class for connectivity layer errors."""


class ConfigurationError(ExchangeError):
    """Raised when required configuration is missing or malformed.

    Fatal to adapter setup: an adapter that raises this during setup does
    not start.
    """


class CredentialError(ExchangeError):
    """Raised when an authenticated call is made without usable credentials."""


class TransportError(ExchangeError):
    """Raised when the venue could not be reached or rejected a request."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class CacheMissError(LookupError):
    """Raised when no snapshot is cached for a (venue, pair, asset) key."""


class ExchangeNotImplementedError(NotImplementedError):
    """Raised for capabilities a venue does not offer."""


class FunctionNotSupportedError(ExchangeNotImplementedError):
    """The venue API has no such function."""

    def __init__(self, message: str = "function not supported"):
        super().__init__(message)


class NotYetImplementedError(ExchangeNotImplementedError):
    """The venue offers the function but this adapter does not wrap it."""

    def __init__(self, message: str = "not yet implemented"):
        super().__init__(message)
