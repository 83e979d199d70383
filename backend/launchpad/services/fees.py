from launchpad.core.constants import BASIS_POINTS_DENOMINATOR, U64_MAX
from launchpad.core.errors import ArithmeticOverflow


def calculate_fee(amount: int, fee_basis_points: int) -> int:
    """
    Fee owed on `amount` at `fee_basis_points` (10_000 == 100%).

    Truncates toward zero. Rates above 100% are accepted and yield a fee larger
    than the principal; bounding the rate is the caller's policy.
    Raises ArithmeticOverflow when an operand or the intermediate product does
    not fit in an unsigned 64-bit integer.
    """
    if not 0 <= amount <= U64_MAX or not 0 <= fee_basis_points <= U64_MAX:
        raise ArithmeticOverflow(
            "Fee operands must be unsigned 64-bit integers",
            amount=amount,
            fee_basis_points=fee_basis_points,
        )

    product = amount * fee_basis_points
    if product > U64_MAX:
        raise ArithmeticOverflow(
            "Fee computation overflowed",
            amount=amount,
            fee_basis_points=fee_basis_points,
        )
    return product // BASIS_POINTS_DENOMINATOR
