"""
Domain error taxonomy.

Every failed precondition or arithmetic step of a curve operation raises one of
these. Each class carries a stable machine-readable `code` and the HTTP status
the API renders it with (see the exception handler in main.py). Nothing here is
retried; the caller receives the code and may resubmit.
"""

from typing import Any, Dict, Optional

from fastapi import status


class LaunchpadError(Exception):
    code = "LaunchpadError"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Launchpad operation failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


# --- Global configuration / authority ---


class NotInitialized(LaunchpadError):
    code = "NotInitialized"
    status_code = status.HTTP_409_CONFLICT
    message = "Launchpad is not initialized"


class AlreadyInitialized(LaunchpadError):
    code = "AlreadyInitialized"
    status_code = status.HTTP_409_CONFLICT
    message = "Launchpad is already initialized"


class InvalidAuthority(LaunchpadError):
    code = "InvalidAuthority"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Only the launchpad authority may change parameters"


class InvalidWithdrawAuthority(LaunchpadError):
    code = "InvalidWithdrawAuthority"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Only the launchpad authority may withdraw a completed curve"


class InvalidParams(LaunchpadError):
    code = "InvalidParams"
    message = "Curve parameters violate the reserve invariants"


class InvalidFeeRecipient(LaunchpadError):
    code = "InvalidFeeRecipient"
    message = "Fee recipient does not match the configured fee recipient"


# --- Lookups ---


class CurveNotFound(LaunchpadError):
    code = "CurveNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Bonding curve not found"


class AccountNotFound(LaunchpadError):
    code = "AccountNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Account not found"


# --- Curve lifecycle ---


class CurveComplete(LaunchpadError):
    code = "CurveComplete"
    status_code = status.HTTP_409_CONFLICT
    message = "Bonding curve is complete"


class CurveNotComplete(LaunchpadError):
    code = "CurveNotComplete"
    status_code = status.HTTP_409_CONFLICT
    message = "Bonding curve is not complete"


# --- Trade preconditions ---


class MinBuy(LaunchpadError):
    code = "MinBuy"
    message = "Buy amount must be greater than zero"


class MinSell(LaunchpadError):
    code = "MinSell"
    message = "Sell amount must be greater than zero"


class InsufficientTokens(LaunchpadError):
    code = "InsufficientTokens"
    message = "Not enough tokens to complete the trade"


class InsufficientBalance(LaunchpadError):
    code = "InsufficientBalance"
    message = "Insufficient lamport balance to cover the trade"


class MaxCostExceeded(LaunchpadError):
    code = "MaxCostExceeded"
    message = "Trade cost plus fee exceeds max_sol_cost"


class MinProceedsNotMet(LaunchpadError):
    code = "MinProceedsNotMet"
    message = "Trade proceeds after fee are below min_sol_output"


class RateLimited(LaunchpadError):
    code = "RateLimited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Transfer amount exceeds the allowance for this account"


# --- Arithmetic / AMM ---


class ArithmeticOverflow(LaunchpadError):
    code = "ArithmeticOverflow"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Arithmetic overflow"


class AmmError(LaunchpadError):
    code = "AmmError"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class Depleted(AmmError):
    code = "Depleted"
    message = "Trade would deplete the virtual token reserves"


class InsufficientLiquidity(AmmError):
    code = "InsufficientLiquidity"
    message = "Curve does not hold enough lamports for this sale"
