"""
Ledger settlement: moves lamports and asset units once amounts are priced.

Runs inside the caller's session and transaction, so a failure anywhere in
the surrounding operation discards every movement made here. Asset-unit
transfers may be charged a fee-on-transfer (TOKEN_TRANSFER_FEE_BASIS_POINTS),
withheld from what the destination receives.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from launchpad.core.config import settings
from launchpad.core.constants import U64_MAX
from launchpad.core.errors import ArithmeticOverflow, InsufficientBalance, InsufficientTokens
from launchpad.models.account import Account
from launchpad.models.curve import BondingCurve, TokenHolding
from launchpad.services.fees import calculate_fee

logger = logging.getLogger(__name__)


class LedgerSettlement:
    def __init__(self, db: Session, transfer_fee_basis_points: Optional[int] = None):
        self.db = db
        self.transfer_fee_basis_points = (
            settings.TOKEN_TRANSFER_FEE_BASIS_POINTS
            if transfer_fee_basis_points is None
            else transfer_fee_basis_points
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_holding(self, account: Account, curve: BondingCurve) -> Optional[TokenHolding]:
        return (
            self.db.query(TokenHolding)
            .filter(
                TokenHolding.account_id == account.id,
                TokenHolding.curve_id == curve.id,
            )
            .first()
        )

    def holding_for(self, account: Account, curve: BondingCurve) -> TokenHolding:
        """Return the account's holding of the curve's asset, creating an empty one."""
        holding = self.find_holding(account, curve)
        if holding is None:
            holding = TokenHolding(account_id=account.id, curve_id=curve.id, amount=0)
            self.db.add(holding)
        return holding

    def lock_accounts(self, *accounts: Account) -> None:
        """
        Lock the accounts' rows and reload their balances before any of them
        is debited or credited. The fee recipient is shared by every curve, so
        trades on different curves would otherwise overwrite each other's
        credits with stale values.
        """
        ids = sorted({account.id for account in accounts})
        # Fixed id order so two trades locking the same pair cannot deadlock
        (
            self.db.query(Account)
            .filter(Account.id.in_(ids))
            .order_by(Account.id)
            .with_for_update()
            .populate_existing()
            .all()
        )

    # ------------------------------------------------------------------
    # Lamports
    # ------------------------------------------------------------------

    def transfer_sol(self, payer, payee, amount: int) -> None:
        """
        Move `amount` lamports between two balance holders (accounts or curve
        custody; both expose `sol_balance`).
        """
        if amount == 0:
            return
        if payer.sol_balance < amount:
            raise InsufficientBalance(required=amount, available=payer.sol_balance)
        if payee.sol_balance + amount > U64_MAX:
            raise ArithmeticOverflow("Recipient lamport balance overflowed")
        payer.sol_balance -= amount
        payee.sol_balance += amount

    # ------------------------------------------------------------------
    # Asset units
    # ------------------------------------------------------------------

    def transfer_fee(self, amount: int) -> int:
        return calculate_fee(amount, self.transfer_fee_basis_points)

    def tokens_to_holder(
        self, curve: BondingCurve, holding: TokenHolding, amount: int
    ) -> int:
        """Release `amount` units from curve custody. Returns units received."""
        if curve.token_balance < amount:
            raise InsufficientTokens(required=amount, available=curve.token_balance)
        received = amount - self.transfer_fee(amount)
        curve.token_balance -= amount
        holding.amount = (holding.amount or 0) + received
        return received

    def tokens_to_curve(
        self, holding: TokenHolding, curve: BondingCurve, amount: int
    ) -> int:
        """Return `amount` units into curve custody. Returns units received."""
        if (holding.amount or 0) < amount:
            raise InsufficientTokens(required=amount, available=holding.amount or 0)
        received = amount - self.transfer_fee(amount)
        holding.amount -= amount
        curve.token_balance += received
        if received != amount:
            logger.info(
                f"Transfer fee withheld {amount - received} units on return to curve {curve.id}"
            )
        return received
