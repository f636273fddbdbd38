from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all ledger-service errors."""


class StoreUnavailable(LedgerError):
    """The key-value store could not be reached or returned a malformed response."""


class InsufficientCreditsError(LedgerError):
    """A charge was attempted against too low a balance (raised by ``charged`` only)."""

    def __init__(self, user_id: str, amount: int, balance: int) -> None:
        super().__init__(
            f"insufficient credits: user_id={user_id} amount={amount} balance={balance}"
        )
        self.user_id = user_id
        self.amount = amount
        self.balance = balance


class InvalidUserIdError(LedgerError):
    """The user identity is neither ``fid:<int>`` nor ``addr:<0x address>``."""


class InvalidTransactionError(LedgerError):
    """The transaction hash is not a 32-byte 0x-prefixed hex string."""


class TransactionRejectedError(LedgerError):
    """The receipt exists but does not qualify for credit (failed, wrong contract)."""


class ReceiptNotFoundError(LedgerError):
    """The transaction has no receipt yet (pending or unknown)."""


class ReceiptUnavailableError(LedgerError):
    """The RPC endpoint could not be reached or returned an error."""
