# app/schemas/jar.py
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field

class JarBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, description="E.g. Necessities")
    percentage: Decimal = Field(Decimal("0"), ge=0, le=100, description="Informational share of income, 0-100")
    description: str = Field("", max_length=500)

class JarCreate(JarBase):
    pass

class JarUpdate(JarBase):
    """Full replacement of jar metadata. The balance is never settable here."""
    pass

class JarRead(JarBase):
    id: int
    current_balance: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class MoneyMovement(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Positive amount with at most two decimals")

class JarBalance(BaseModel):
    jar_id: int
    balance: Decimal
