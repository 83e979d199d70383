from dataclasses import dataclass
from typing import Optional
import logging

from launchpad.core.constants import TOKEN_DECIMALS, U64_MAX, U128_MAX
from launchpad.core.errors import ArithmeticOverflow, Depleted, InsufficientLiquidity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuyResult:
    token_amount: int
    sol_amount: int


@dataclass(frozen=True)
class SellResult:
    token_amount: int
    sol_amount: int


def _u128(value: int, what: str) -> int:
    if not 0 <= value <= U128_MAX:
        raise ArithmeticOverflow(f"{what} overflowed", value=value)
    return value


def _narrow_u64(value: int, what: str) -> int:
    """Narrow a wide intermediate back to a stored u64 amount."""
    if not 0 <= value <= U64_MAX:
        raise ArithmeticOverflow(f"{what} does not fit in 64 bits", value=value)
    return value


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


class AMM:
    """
    Dual-reserve constant-product pricing over a snapshot of one bonding curve.

    Prices come from the virtual reserves; the real reserves track what the
    curve actually owes and holds. The engine never touches persistence: the
    caller copies the post-trade reserves back into the BondingCurve row once
    every other check has passed.

    Rounding always favours the curve: buys round the charge up, sells round
    the payout down, so virtual_sol * virtual_token never decreases across a
    buy followed by the matching sell.
    """

    def __init__(
        self,
        virtual_sol_reserves: int,
        virtual_token_reserves: int,
        real_sol_reserves: int,
        real_token_reserves: int,
        initial_virtual_token_reserves: int,
        token_balance: Optional[int] = None,
    ):
        self.virtual_sol_reserves = _u128(virtual_sol_reserves, "virtual_sol_reserves")
        self.virtual_token_reserves = _u128(
            virtual_token_reserves, "virtual_token_reserves"
        )
        self.real_sol_reserves = _u128(real_sol_reserves, "real_sol_reserves")
        self.real_token_reserves = _u128(real_token_reserves, "real_token_reserves")
        self.initial_virtual_token_reserves = _u128(
            initial_virtual_token_reserves, "initial_virtual_token_reserves"
        )
        # Asset units actually custodied for the curve. Defaults to the
        # bookkeeping value when the settlement layer never skims transfers.
        self.token_balance = (
            self.real_token_reserves
            if token_balance is None
            else _u128(token_balance, "token_balance")
        )

    @classmethod
    def from_curve(cls, curve, initial_virtual_token_reserves: int) -> "AMM":
        return cls(
            virtual_sol_reserves=curve.virtual_sol_reserves,
            virtual_token_reserves=curve.virtual_token_reserves,
            real_sol_reserves=curve.real_sol_reserves,
            real_token_reserves=curve.real_token_reserves,
            initial_virtual_token_reserves=initial_virtual_token_reserves,
            token_balance=curve.token_balance,
        )

    # ------------------------------------------------------------------
    # Pricing (read-only)
    # ------------------------------------------------------------------

    def product(self) -> int:
        return _u128(
            self.virtual_sol_reserves * self.virtual_token_reserves, "reserve product"
        )

    def get_buy_price(self, token_amount: int) -> int:
        """
        Lamports required to take `token_amount` out of the virtual reserves.
        Charge is ceil(k / new_virtual_token) - virtual_sol.
        """
        k = self.product()
        new_virtual_token_reserves = self.virtual_token_reserves - token_amount
        if new_virtual_token_reserves < 0:
            raise ArithmeticOverflow(
                "Buy exceeds virtual token reserves", token_amount=token_amount
            )
        if new_virtual_token_reserves == 0:
            raise Depleted(token_amount=token_amount)

        new_virtual_sol_reserves = _u128(
            _ceil_div(k, new_virtual_token_reserves), "new virtual sol reserves"
        )
        return _narrow_u64(
            new_virtual_sol_reserves - self.virtual_sol_reserves, "buy sol amount"
        )

    def get_sell_price(self, token_amount: int) -> int:
        """
        Lamports paid out for returning `token_amount` to the virtual reserves.
        Payout is virtual_sol - floor(k / new_virtual_token), never more than
        the real lamports the curve holds.
        """
        k = self.product()
        new_virtual_token_reserves = _u128(
            self.virtual_token_reserves + token_amount, "new virtual token reserves"
        )
        if new_virtual_token_reserves == 0:
            raise Depleted(token_amount=token_amount)

        new_virtual_sol_reserves = k // new_virtual_token_reserves
        sol_amount = _narrow_u64(
            self.virtual_sol_reserves - new_virtual_sol_reserves, "sell sol amount"
        )
        if sol_amount > self.real_sol_reserves:
            raise InsufficientLiquidity(
                sol_amount=sol_amount, real_sol_reserves=self.real_sol_reserves
            )
        return sol_amount

    def get_token_price(self) -> int:
        """Marginal price in lamports per whole token (10**TOKEN_DECIMALS units)."""
        if self.virtual_token_reserves == 0:
            return 0
        return (
            self.virtual_sol_reserves * 10**TOKEN_DECIMALS
        ) // self.virtual_token_reserves

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def apply_buy(self, token_amount: int) -> BuyResult:
        """
        Sell `token_amount` out of the curve (a user buy).

        The amount is first clamped to the units actually custodied, which can
        trail real_token_reserves when inbound transfers were charged a fee.
        The snapshot only changes if every step succeeds.
        """
        token_amount = min(_u128(token_amount, "token_amount"), self.token_balance)
        sol_amount = self.get_buy_price(token_amount)

        virtual_token_reserves = self.virtual_token_reserves - token_amount
        virtual_sol_reserves = self.virtual_sol_reserves + sol_amount
        real_token_reserves = self.real_token_reserves - token_amount
        real_sol_reserves = self.real_sol_reserves + sol_amount
        if real_token_reserves < 0:
            raise ArithmeticOverflow(
                "Buy exceeds real token reserves", token_amount=token_amount
            )

        self._store(
            virtual_sol_reserves,
            virtual_token_reserves,
            real_sol_reserves,
            real_token_reserves,
        )
        self.token_balance -= token_amount

        logger.info(f"Applied buy: {token_amount} tokens for {sol_amount} lamports")
        return BuyResult(
            token_amount=_narrow_u64(token_amount, "token_amount"),
            sol_amount=sol_amount,
        )

    def apply_sell(self, token_amount: int) -> SellResult:
        """Take `token_amount` back into the curve (a user sell)."""
        token_amount = _u128(token_amount, "token_amount")
        sol_amount = self.get_sell_price(token_amount)

        virtual_token_reserves = self.virtual_token_reserves + token_amount
        virtual_sol_reserves = self.virtual_sol_reserves - sol_amount
        real_token_reserves = self.real_token_reserves + token_amount
        real_sol_reserves = self.real_sol_reserves - sol_amount

        self._store(
            virtual_sol_reserves,
            virtual_token_reserves,
            real_sol_reserves,
            real_token_reserves,
        )
        self.token_balance += token_amount

        logger.info(f"Applied sell: {token_amount} tokens for {sol_amount} lamports")
        return SellResult(
            token_amount=_narrow_u64(token_amount, "token_amount"),
            sol_amount=sol_amount,
        )

    def _store(
        self,
        virtual_sol_reserves: int,
        virtual_token_reserves: int,
        real_sol_reserves: int,
        real_token_reserves: int,
    ) -> None:
        # Narrow everything first so a failure leaves the snapshot untouched
        narrowed = (
            _narrow_u64(virtual_sol_reserves, "virtual_sol_reserves"),
            _narrow_u64(virtual_token_reserves, "virtual_token_reserves"),
            _narrow_u64(real_sol_reserves, "real_sol_reserves"),
            _narrow_u64(real_token_reserves, "real_token_reserves"),
        )
        (
            self.virtual_sol_reserves,
            self.virtual_token_reserves,
            self.real_sol_reserves,
            self.real_token_reserves,
        ) = narrowed

    # ------------------------------------------------------------------
    # State snapshot
    # ------------------------------------------------------------------

    def reserves(self) -> dict:
        return {
            "virtual_sol_reserves": self.virtual_sol_reserves,
            "virtual_token_reserves": self.virtual_token_reserves,
            "real_sol_reserves": self.real_sol_reserves,
            "real_token_reserves": self.real_token_reserves,
        }

    def __repr__(self):
        return (
            f"AMM(virtual_sol={self.virtual_sol_reserves}, "
            f"virtual_token={self.virtual_token_reserves}, "
            f"real_sol={self.real_sol_reserves}, "
            f"real_token={self.real_token_reserves})"
        )
