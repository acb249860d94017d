"""
Commission policy.

Flat-rate commission on a referred user's deposit. Advisory only: the
figure is shown next to each deposit, payments are recorded by admins.
"""

from decimal import ROUND_HALF_UP, Decimal

from referral_ledger.config.constants import MONEY_QUANTUM, REFERRAL_COMMISSION_RATE


def quantize_money(amount: Decimal) -> Decimal:
    """Round to cents, half up."""
    return Decimal(amount).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def commission_for_deposit(
    amount: Decimal,
    rate: Decimal = REFERRAL_COMMISSION_RATE,
) -> Decimal:
    """
    Calculate the advisory commission for a deposit.

    Args:
        amount: Deposit amount
        rate: Commission rate (default 5%)

    Returns:
        amount * rate rounded half up to cents

    Examples:
        >>> commission_for_deposit(Decimal("1000.00"))
        Decimal('50.00')
        >>> commission_for_deposit(Decimal("0.10"))
        Decimal('0.01')
    """
    return quantize_money(amount * rate)
