# app/models/transaction.py
from sqlalchemy import Column, String, ForeignKey, Numeric, DateTime, Integer, CheckConstraint, Index
from app.core.database import Base
from app.utils.dates import utcnow

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint("source_jar_id <> destination_jar_id", name="ck_transactions_distinct_jars"),
        Index("ix_transactions_date_id", "transaction_date", "id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # RESTRICT: a jar with history cannot be deleted
    source_jar_id = Column(Integer, ForeignKey("jars.id", ondelete="RESTRICT"), nullable=False, index=True)
    destination_jar_id = Column(Integer, ForeignKey("jars.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(18, 2), nullable=False)
    description = Column(String(length=200), nullable=False)
    transaction_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, default=None)

    def __repr__(self):
        return (
            f"<Transaction id={self.id} amount={self.amount} "
            f"{self.source_jar_id}->{self.destination_jar_id} date={self.transaction_date}>"
        )
