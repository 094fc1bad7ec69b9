"""Withdrawal conversation states.

One frozen dataclass per state. Each carries only the fields that are valid
in that state, so a destination can never exist without an amount.

    Idle -> AmountRequested -> AmountCaptured -> DestinationCaptured
         -> SigningInFlight -> BroadcastInFlight -> Idle (terminal)
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class InputKind(str, Enum):
    """Kind of free-text reply a session is waiting for."""

    AMOUNT = "amount"
    DESTINATION = "destination"


class WithdrawalStatus(str, Enum):
    """Status of a withdrawal attempt."""

    IDLE = "idle"
    AMOUNT_REQUESTED = "amount_requested"
    AMOUNT_CAPTURED = "amount_captured"
    DESTINATION_CAPTURED = "destination_captured"
    SIGNING = "signing"
    BROADCASTING = "broadcasting"


@dataclass(frozen=True)
class Idle:
    status = WithdrawalStatus.IDLE


@dataclass(frozen=True)
class AmountRequested:
    prompt_id: str
    status = WithdrawalStatus.AMOUNT_REQUESTED


@dataclass(frozen=True)
class AmountCaptured:
    amount: Decimal
    prompt_id: str
    status = WithdrawalStatus.AMOUNT_CAPTURED


@dataclass(frozen=True)
class DestinationCaptured:
    amount: Decimal
    destination: str
    status = WithdrawalStatus.DESTINATION_CAPTURED


@dataclass(frozen=True)
class SigningInFlight:
    amount: Decimal
    destination: str
    status = WithdrawalStatus.SIGNING


@dataclass(frozen=True)
class BroadcastInFlight:
    amount: Decimal
    destination: str
    tx_hash: str
    status = WithdrawalStatus.BROADCASTING


WithdrawalState = Union[
    Idle,
    AmountRequested,
    AmountCaptured,
    DestinationCaptured,
    SigningInFlight,
    BroadcastInFlight,
]

IDLE = Idle()


@dataclass(frozen=True)
class PendingWithdrawal:
    """Read-only view of what the user has entered so far."""

    amount: Decimal
    destination: Optional[str] = None


def expected_input(state: WithdrawalState) -> Optional[InputKind]:
    """Return the free-text input the state is waiting for, if any."""
    if isinstance(state, AmountRequested):
        return InputKind.AMOUNT
    if isinstance(state, AmountCaptured):
        return InputKind.DESTINATION
    return None


def pending_withdrawal(state: WithdrawalState) -> Optional[PendingWithdrawal]:
    """Project a state onto the pending amount/destination pair."""
    if isinstance(state, AmountCaptured):
        return PendingWithdrawal(amount=state.amount)
    if isinstance(state, (DestinationCaptured, SigningInFlight, BroadcastInFlight)):
        return PendingWithdrawal(amount=state.amount, destination=state.destination)
    return None


def is_in_flight(state: WithdrawalState) -> bool:
    """Signing or broadcasting: past the point where cancellation is allowed."""
    return isinstance(state, (DestinationCaptured, SigningInFlight, BroadcastInFlight))
