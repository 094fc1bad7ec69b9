"""Session model for one chat user."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Hashable, Optional

from walletbot.withdrawal.states import (
    IDLE,
    InputKind,
    PendingWithdrawal,
    WithdrawalState,
    expected_input,
    pending_withdrawal,
)


class AddressAlreadyAssignedError(Exception):
    """Raised when keys are assigned to a session that already has an address."""

    pass


@dataclass
class UserSession:
    """Conversational state for one chat user.

    Key material is held in memory only and is assigned exactly once.
    Re-deriving would orphan funds already sent to the old address.
    """

    user_id: Hashable
    address: Optional[str] = None
    private_key: Optional[str] = field(default=None, repr=False)
    public_key: Optional[str] = None
    withdrawal: WithdrawalState = IDLE
    last_message_ref: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_wallet(self) -> bool:
        return self.address is not None and self.private_key is not None

    @property
    def pending_withdrawal(self) -> Optional[PendingWithdrawal]:
        return pending_withdrawal(self.withdrawal)

    @property
    def expected_input(self) -> Optional[InputKind]:
        return expected_input(self.withdrawal)

    def assign_keys(self, address: str, private_key: str, public_key: str) -> None:
        """Attach a freshly derived keypair.

        Raises:
            AddressAlreadyAssignedError: If the session already owns an address.
        """
        if self.address is not None:
            raise AddressAlreadyAssignedError(
                f"User {self.user_id} already has address {self.address}"
            )
        self.address = address
        self.private_key = private_key
        self.public_key = public_key

    def reset_withdrawal(self) -> None:
        """Drop any pending withdrawal. Keys are kept."""
        self.withdrawal = IDLE
