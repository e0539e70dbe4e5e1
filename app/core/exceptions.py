"""Exceptions raised by the recovery sweep."""


class RecoveryError(Exception):
    """Base class for recovery sweep errors."""


class CartStoreUnavailableError(RecoveryError):
    """The cart store could not be queried. Aborts the whole run."""


class RecoveryConfigurationError(RecoveryError):
    """The sweep cannot run with the current configuration. Aborts the whole run."""


class EmailDeliveryError(RecoveryError):
    """A single recovery email could not be delivered."""
