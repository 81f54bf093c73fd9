# app/models/jar.py
from decimal import Decimal
from sqlalchemy import Column, String, Numeric, DateTime, Integer, CheckConstraint
from app.core.database import Base
from app.utils.dates import utcnow

class Jar(Base):
    __tablename__ = "jars"
    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_jars_balance_non_negative"),
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="ck_jars_percentage_range"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(length=50), nullable=False)
    # Informational only; deposits are never split by percentage
    percentage = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    description = Column(String(length=500), nullable=False, default="")
    current_balance = Column(Numeric(18, 2), nullable=False, default=Decimal("0"))

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, default=None)

    def __repr__(self):
        return f"<Jar id={self.id} name={self.name} balance={self.current_balance}>"
