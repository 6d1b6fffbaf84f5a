from __future__ import annotations

"""Pydantic request schemas for the public API.

Amounts are accepted as strings or numbers and handed to the economic
policies unparsed; the policies own amount validation and report
`invalid_amount` themselves.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class BurnRequest(BaseModel):
    target: str = Field(..., description='Burn pool to empty: "holder" or "global"')

    model_config = {"extra": "allow"}


class GlobalBurnCreditRequest(BaseModel):
    amount: Any = Field(..., description="Base-token amount to earmark in the global pool")

    model_config = {"extra": "allow"}


class TicketPurchaseRequest(BaseModel):
    quantity: Any = Field(..., description="Number of raffle tickets (integer >= 1)")

    model_config = {"extra": "allow"}


class SaleBuyRequest(BaseModel):
    token_amount: Any = Field(..., description="eDINOSUR amount to buy (decimal > 0)")

    # Optional client-side quote; informational only, the server prices the order.
    quoted_price_usd: Optional[str] = Field(default=None, description="Price shown to the user")

    model_config = {"extra": "allow"}
