"""Request and response schemas for the explorer API."""

from decimal import Decimal
from pydantic import BaseModel, Field


class BroadcastRequest(BaseModel):
    """Signed raw transaction to broadcast."""

    hex: str = Field(..., min_length=2, description="Signed transaction, hex encoded")


class SendFundsRequest(BaseModel):
    """Faucet payment from the node wallet."""

    address: str = Field(..., min_length=1, description="Destination address")
    amount: Decimal = Field(..., gt=0, max_digits=16, decimal_places=8, description="Amount in BTC")


class TxidResponse(BaseModel):
    txid: str = Field(..., description="Transaction id")
