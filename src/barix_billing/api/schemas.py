"""Request and response models for the HTTP API."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class SendReminderRequest(BaseModel):
    """Body of the reminder send endpoint; validated by hand for 400s."""

    invoiceId: str | None = None
    reminderType: str | None = None


class TotalsLineItem(BaseModel):
    description: str = ""
    quantity: Any = 0
    rate: Any = 0


class IndirectMaterialsPayload(BaseModel):
    enabled: bool = False
    type: str = "amount"
    amount: Any = 0
    percent: Any = 0


class TotalsRequest(BaseModel):
    lineItems: list[TotalsLineItem] = Field(default_factory=list)
    indirect: IndirectMaterialsPayload | None = None
    taxRate: Any = None


class TotalsResponse(BaseModel):
    baseSubtotal: Decimal
    indirectCharge: Decimal
    subtotal: Decimal
    taxRate: Decimal
    taxAmount: Decimal
    total: Decimal


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
