"""Transaction signing.

Only local signing exists: each user's key lives in their session.
"""

from walletbot.signing.base import SignedTransaction, SigningError, TransactionIntent
from walletbot.signing.local import sign_transaction

__all__ = [
    "SignedTransaction",
    "SigningError",
    "TransactionIntent",
    "sign_transaction",
]
