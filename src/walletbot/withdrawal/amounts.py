"""Amount parsing and base-unit conversion.

All arithmetic uses Decimal with a context wide enough for any uint256 value,
so no conversion ever rounds.
"""

from decimal import Context, Decimal, Inexact, InvalidOperation, localcontext

from walletbot.signing.base import UINT256_MAX

NATIVE_DECIMALS = 18

UINT256_DIGITS = len(str(UINT256_MAX))
_EXACT = Context(prec=80, traps=[Inexact, InvalidOperation])


class InvalidAmountError(ValueError):
    """Raised when user input is not a usable withdrawal amount."""

    pass


def parse_amount(text: str, decimals: int = NATIVE_DECIMALS) -> Decimal:
    """Parse user input into a positive amount.

    Raises:
        InvalidAmountError: Not a number, not finite, <= 0, finer than
            the asset's smallest unit, or more base units than a transaction
            can carry.
    """
    try:
        amount = Decimal(text.strip())
    except (InvalidOperation, AttributeError):
        raise InvalidAmountError("Amount must be a number")

    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a number")
    if amount <= 0:
        raise InvalidAmountError("Amount must be positive")
    if amount.as_tuple().exponent < -decimals:
        raise InvalidAmountError(f"Amount has more than {decimals} decimal places")

    to_base_units(amount, decimals)
    return amount


def to_base_units(amount: Decimal, decimals: int = NATIVE_DECIMALS) -> int:
    """Convert an amount to the smallest denomination.

    Raises:
        InvalidAmountError: If the amount is not an exact multiple of one base
            unit, or the result exceeds uint256.
    """
    # 10**78 base units and up cannot be a uint256
    if amount and amount.adjusted() + decimals >= UINT256_DIGITS:
        raise InvalidAmountError("Amount is too large")

    with localcontext(_EXACT):
        try:
            scaled = amount.scaleb(decimals)
            value = int(scaled.to_integral_exact())
        except (Inexact, InvalidOperation):
            raise InvalidAmountError(f"Amount has more than {decimals} decimal places")

    if value > UINT256_MAX:
        raise InvalidAmountError("Amount is too large")
    return value


def from_base_units(value: int, decimals: int = NATIVE_DECIMALS) -> Decimal:
    """Convert base units back to a (normalized) Decimal amount."""
    with localcontext(_EXACT):
        amount = Decimal(value).scaleb(-decimals)
        if amount == 0:
            return Decimal(0)
        return amount.normalize()


def format_amount(amount: Decimal) -> str:
    """Render an amount without exponent notation or trailing zeros."""
    text = f"{amount:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
