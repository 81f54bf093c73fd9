# app/crud/transaction.py
"""
Ledger: transaction records and the transfer protocol.

A transfer debits the source, credits the destination and appends one
transaction row inside a single unit of work. Either all three writes commit
or none of them do; no session ever sees a debited source without the
matching credit.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.database import unit_of_work
from app.core.db_utils import with_db_retry
from app.core.exceptions import ConflictError, InsufficientFundsError, NotFoundError, ValidationError
from app.crud.jar import _credit, _debit, get_jar_by_id
from app.models.jar import Jar
from app.models.transaction import Transaction
from app.schemas.pagination import PaginationParams
from app.schemas.transaction import JarSummary, TransactionRead
from app.utils.dates import as_utc, utcnow
from app.utils.money import to_positive_amount

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 200

# Newest first; the id keeps insertion order among equal timestamps
LEDGER_ORDER = (desc(Transaction.transaction_date), desc(Transaction.id))

SourceJar = aliased(Jar, name="source_jar")
DestinationJar = aliased(Jar, name="destination_jar")


def _validate_entry(source_jar_id: int, destination_jar_id: int, amount: Any, description: Any) -> Tuple[Decimal, str]:
    amount = to_positive_amount(amount)
    if source_jar_id == destination_jar_id:
        raise ValidationError("Source and destination jars cannot be the same")
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Description is required")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
    return amount, description


def _ledger_query():
    """Transactions joined with the names of both jars."""
    return (
        select(
            Transaction,
            SourceJar.name.label("source_jar_name"),
            DestinationJar.name.label("destination_jar_name"),
        )
        .join(SourceJar, SourceJar.id == Transaction.source_jar_id)
        .join(DestinationJar, DestinationJar.id == Transaction.destination_jar_id)
    )


def _to_read(row) -> TransactionRead:
    tx, source_name, destination_name = row
    return TransactionRead(
        id=tx.id,
        source_jar_id=tx.source_jar_id,
        destination_jar_id=tx.destination_jar_id,
        source_jar=JarSummary(id=tx.source_jar_id, name=source_name),
        destination_jar=JarSummary(id=tx.destination_jar_id, name=destination_name),
        amount=tx.amount,
        description=tx.description,
        transaction_date=tx.transaction_date,
        created_at=tx.created_at,
        updated_at=tx.updated_at,
    )


async def _page(query, page: int, page_size: int, db: AsyncSession) -> Tuple[List[TransactionRead], int]:
    params = PaginationParams(page=page, page_size=page_size)
    # Count and page read inside the same transaction
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(
        query.order_by(*LEDGER_ORDER)
        .offset(params.offset)
        .limit(params.page_size)
    )
    return [_to_read(row) for row in result.all()], int(total or 0)


# ────────────────────────────────────────────────────────────────────────────────
# READS
# ────────────────────────────────────────────────────────────────────────────────
async def get_transaction_by_id(transaction_id: int, db: AsyncSession) -> Optional[TransactionRead]:
    result = await db.execute(_ledger_query().where(Transaction.id == transaction_id))
    row = result.one_or_none()
    return _to_read(row) if row else None

async def get_transactions(db: AsyncSession) -> List[TransactionRead]:
    result = await db.execute(_ledger_query().order_by(*LEDGER_ORDER))
    return [_to_read(row) for row in result.all()]

async def get_transactions_page(page: int, page_size: int, db: AsyncSession) -> Tuple[List[TransactionRead], int]:
    return await _page(_ledger_query(), page, page_size, db)

async def get_transactions_by_jar(
    jar_id: int, page: int, page_size: int, db: AsyncSession
) -> Tuple[List[TransactionRead], int]:
    """Transactions where the jar is the source or the destination."""
    query = _ledger_query().where(
        or_(Transaction.source_jar_id == jar_id, Transaction.destination_jar_id == jar_id)
    )
    return await _page(query, page, page_size, db)

async def get_transactions_by_date_range(
    start: datetime, end: datetime, page: int, page_size: int, db: AsyncSession
) -> Tuple[List[TransactionRead], int]:
    """Transactions whose transaction_date lies in [start, end]."""
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise ValidationError("Start date cannot be later than end date")
    query = _ledger_query().where(
        Transaction.transaction_date >= start,
        Transaction.transaction_date <= end,
    )
    return await _page(query, page, page_size, db)


# ────────────────────────────────────────────────────────────────────────────────
# WRITES
# ────────────────────────────────────────────────────────────────────────────────
async def create_transaction(
    source_jar_id: int,
    destination_jar_id: int,
    amount: Any,
    description: str,
    db: AsyncSession,
    transaction_date: Optional[datetime] = None,
) -> Transaction:
    """Append a ledger row without touching balances.

    Meant for seeding and imports only; the caller owns balance consistency.
    """
    amount, description = _validate_entry(source_jar_id, destination_jar_id, amount, description)
    now = utcnow()
    try:
        async with unit_of_work(db):
            for jar_id in (source_jar_id, destination_jar_id):
                if await get_jar_by_id(jar_id, db) is None:
                    raise NotFoundError(f"Jar with ID {jar_id} not found")
            new_tx = Transaction(
                source_jar_id=source_jar_id,
                destination_jar_id=destination_jar_id,
                amount=amount,
                description=description,
                transaction_date=as_utc(transaction_date) if transaction_date else now,
                created_at=now,
            )
            db.add(new_tx)
    except IntegrityError as e:
        # A referenced jar vanished between the check and the insert
        raise NotFoundError("One or both jars not found") from e
    return new_tx


@with_db_retry()
async def _apply_transfer(
    source_jar_id: int, destination_jar_id: int, amount: Decimal, description: str, db: AsyncSession
) -> Transaction:
    now = utcnow()
    async with unit_of_work(db):
        await _debit(source_jar_id, amount, db)
        await _credit(destination_jar_id, amount, db)
        new_tx = Transaction(
            source_jar_id=source_jar_id,
            destination_jar_id=destination_jar_id,
            amount=amount,
            description=description,
            transaction_date=now,
            created_at=now,
        )
        db.add(new_tx)
    return new_tx


async def transfer_money(
    source_jar_id: int, destination_jar_id: int, amount: Any, description: str, db: AsyncSession
) -> Transaction:
    """
    Move ``amount`` from one jar to another and record it.

    All preconditions are checked before any write. Raises ValidationError
    for bad input, NotFoundError when either jar is missing,
    InsufficientFundsError when the source cannot cover the amount and
    TransientStoreError when the store keeps failing. In every failure case
    no balance changed and no transaction was recorded.
    """
    amount, description = _validate_entry(source_jar_id, destination_jar_id, amount, description)
    try:
        tx = await _apply_transfer(source_jar_id, destination_jar_id, amount, description, db)
    except NotFoundError as e:
        logger.warning(f"Transfer {source_jar_id}->{destination_jar_id} rejected: {e}")
        raise NotFoundError("One or both jars not found") from e
    except InsufficientFundsError as e:
        logger.warning(f"Transfer {source_jar_id}->{destination_jar_id} rejected: {e}")
        raise
    except IntegrityError as e:
        # A CHECK or foreign key fired at flush time
        logger.warning(f"Transfer {source_jar_id}->{destination_jar_id} violated a constraint: {e}")
        raise ConflictError("Transfer violates a ledger constraint") from e
    logger.info(
        f"Transferred {amount} from jar {source_jar_id} to jar {destination_jar_id} (transaction {tx.id})"
    )
    return tx
