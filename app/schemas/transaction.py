# app/schemas/transaction.py
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal

class TransactionBase(BaseModel):
    source_jar_id: int
    destination_jar_id: int
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=200, description="E.g. Birthday gift")

class TransactionCreate(TransactionBase):
    """Raw ledger entry for seeding/import. Does not move any money."""
    transaction_date: Optional[datetime] = Field(None, description="ISO 8601 date/time; defaults to now")

class TransferRequest(TransactionBase):
    pass

class JarSummary(BaseModel):
    id: int
    name: str

class TransactionRead(TransactionBase):
    id: int
    source_jar: JarSummary
    destination_jar: JarSummary
    transaction_date: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
