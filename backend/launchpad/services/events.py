"""
Curve notifications.

Each event is emitted as one structured log record (rendered by the JSON
formatter installed in main.py). Trade events are additionally persisted as
Trade rows by the trade pipeline and returned in the trade response.
"""

import logging
import uuid

from pydantic import BaseModel

from launchpad.models.curve import Team

logger = logging.getLogger("launchpad.events")


class CreateEvent(BaseModel):
    name: str
    symbol: str
    uri: str
    mint: uuid.UUID
    creator: str
    team: Team


class TradeEvent(BaseModel):
    mint: uuid.UUID
    sol_amount: int
    token_amount: int
    fee: int
    is_buy: bool
    user: str
    timestamp: int
    virtual_sol_reserves: int
    virtual_token_reserves: int
    real_sol_reserves: int
    real_token_reserves: int


class CompleteEvent(BaseModel):
    user: str
    mint: uuid.UUID
    timestamp: int


def emit(event: BaseModel) -> None:
    log_record = logging.LogRecord(
        name="launchpad.events",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=type(event).__name__,
        args=(),
        exc_info=None,
    )
    log_record.event = event.model_dump(mode="json")
    logger.handle(log_record)
