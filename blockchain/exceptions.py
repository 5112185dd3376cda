class LedgerError(Exception):
    """Base class for every ledger failure."""


class InvalidTransactionError(LedgerError):
    """The approval event cannot become a transaction (nothing was hashed or stored)."""


class ChainContinuityError(LedgerError):
    """A block does not extend the current chain head."""

    def __init__(self, message, index=None):
        super().__init__(message)
        self.index = index


class LedgerConfigurationError(LedgerError):
    pass
