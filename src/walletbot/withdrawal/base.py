"""Values the withdrawal state machine hands back to the front end.

Withdrawal flow:
1. User requests withdrawal (prompt for amount)
2. Amount is parsed and stored (prompt for destination)
3. Destination is validated
4. Sign-info (nonce, gas) is fetched from the custody API
5. Transaction is signed locally
6. Signed transaction is broadcast
7. Outcome is reported and the pending withdrawal cleared
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from walletbot.withdrawal.states import InputKind


@dataclass(frozen=True)
class WithdrawalOutcome:
    """Terminal result of a withdrawal attempt."""

    success: bool
    amount: Decimal
    destination: str
    order_id: Optional[str] = None
    tx_hash: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class Reply:
    """Message for the front end to show the user.

    When `expects` is set the message is a prompt: the front end should render
    it so the user can answer, and pass `prompt_id` back with a cancel action.
    """

    text: str
    expects: Optional[InputKind] = None
    prompt_id: Optional[str] = None
    outcome: Optional[WithdrawalOutcome] = None

    @property
    def is_prompt(self) -> bool:
        return self.expects is not None
