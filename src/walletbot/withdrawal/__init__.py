"""Withdrawal module: conversation states, amounts and the state machine.

Import WithdrawalStateMachine from walletbot.withdrawal.machine.
"""

from walletbot.withdrawal.amounts import format_amount, from_base_units, parse_amount, to_base_units
from walletbot.withdrawal.base import Reply, WithdrawalOutcome
from walletbot.withdrawal.states import InputKind, WithdrawalState

__all__ = [
    "InputKind",
    "Reply",
    "WithdrawalOutcome",
    "WithdrawalState",
    "format_amount",
    "from_base_units",
    "parse_amount",
    "to_base_units",
]
