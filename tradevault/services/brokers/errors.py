"""Broker adapter failures. All of them abort a sync before any import starts."""


class BrokerError(Exception):
    """Base class for broker sync failures."""


class UnsupportedBrokerError(BrokerError):
    """No adapter can serve this broker."""


class BrokerConfigurationError(BrokerError):
    """The connection is missing something the broker needs (secret, gateway URL)."""


class BrokerRequestError(BrokerError):
    """The broker API could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
