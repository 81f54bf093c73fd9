# app/crud/jar.py
"""
Jar store: jar records and their balance primitives.

Balances only ever change through ``_credit`` and ``_debit``. Each is one
conditional UPDATE statement, so the read-modify-write happens under the
store's row lock and two writers on the same jar serialize instead of both
acting on a stale balance. Neither primitive commits; ``deposit_to_jar`` and
``withdraw_from_jar`` wrap them in their own unit of work, and the ledger
composes them inside a transfer.
"""
import logging
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import unit_of_work
from app.core.db_utils import with_db_retry
from app.core.exceptions import ConflictError, InsufficientFundsError, NotFoundError, ValidationError
from app.models.jar import Jar
from app.models.transaction import Transaction
from app.schemas.pagination import PaginationParams
from app.utils.dates import utcnow
from app.utils.money import MAX_AMOUNT, to_amount, to_positive_amount

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500

# Canonical jars seeded at bootstrap
DEFAULT_JARS: List[dict] = [
    {"name": "Necessities", "percentage": Decimal("50.00"), "description": "Essential expenses like housing, utilities, groceries"},
    {"name": "Financial Freedom", "percentage": Decimal("10.00"), "description": "Long-term investments and wealth building"},
    {"name": "Education", "percentage": Decimal("10.00"), "description": "Personal development and learning"},
    {"name": "Long-term Savings", "percentage": Decimal("10.00"), "description": "Emergency fund and future goals"},
    {"name": "Play", "percentage": Decimal("10.00"), "description": "Entertainment and fun activities"},
    {"name": "Give", "percentage": Decimal("10.00"), "description": "Charitable donations and helping others"},
]


def _validate_metadata(name: Any, percentage: Any, description: Any) -> Tuple[str, Decimal, str]:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Jar name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(f"Jar name cannot exceed {NAME_MAX_LENGTH} characters")
    pct = to_amount(percentage, "percentage")
    if pct < 0 or pct > 100:
        raise ValidationError("Percentage must be between 0 and 100")
    if description is None:
        description = ""
    if not isinstance(description, str):
        raise ValidationError("Jar description must be text")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Jar description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
    return name, pct, description


# ────────────────────────────────────────────────────────────────────────────────
# READS
# ────────────────────────────────────────────────────────────────────────────────
async def get_jar_by_id(jar_id: int, db: AsyncSession) -> Optional[Jar]:
    result = await db.execute(select(Jar).where(Jar.id == jar_id))
    return result.scalar_one_or_none()

async def get_jars(db: AsyncSession) -> List[Jar]:
    result = await db.execute(select(Jar).order_by(Jar.id))
    return list(result.scalars().all())

async def get_jars_page(page: int, page_size: int, db: AsyncSession) -> Tuple[List[Jar], int]:
    """One page of jars ordered by id, plus the total jar count."""
    params = PaginationParams(page=page, page_size=page_size)
    total = await db.scalar(select(func.count()).select_from(Jar))
    result = await db.execute(
        select(Jar)
        .order_by(Jar.id)
        .offset(params.offset)
        .limit(params.page_size)
    )
    return list(result.scalars().all()), int(total or 0)

async def get_jar_balance(jar_id: int, db: AsyncSession) -> Decimal:
    balance = await db.scalar(select(Jar.current_balance).where(Jar.id == jar_id))
    if balance is None:
        raise NotFoundError(f"Jar with ID {jar_id} not found")
    return balance


# ────────────────────────────────────────────────────────────────────────────────
# METADATA
# ────────────────────────────────────────────────────────────────────────────────
async def create_jar(name: str, percentage: Any, description: str, db: AsyncSession) -> Jar:
    name, pct, description = _validate_metadata(name, percentage, description)
    async with unit_of_work(db):
        new_jar = Jar(
            name=name,
            percentage=pct,
            description=description,
            current_balance=Decimal("0.00"),
            created_at=utcnow(),
        )
        db.add(new_jar)
    logger.info(f"Created jar {new_jar.id} ({new_jar.name})")
    return new_jar

async def update_jar(jar_id: int, name: str, percentage: Any, description: str, db: AsyncSession) -> Jar:
    name, pct, description = _validate_metadata(name, percentage, description)
    async with unit_of_work(db):
        jar = await get_jar_by_id(jar_id, db)
        if jar is None:
            raise NotFoundError(f"Jar with ID {jar_id} not found")
        jar.name = name
        jar.percentage = pct
        jar.description = description
        jar.updated_at = utcnow()
    return jar

async def delete_jar(jar_id: int, db: AsyncSession) -> bool:
    """Delete a jar that no transaction references. False if it does not exist."""
    try:
        async with unit_of_work(db):
            jar = await get_jar_by_id(jar_id, db)
            if jar is None:
                return False
            referenced = await db.scalar(
                select(func.count())
                .select_from(Transaction)
                .where(or_(Transaction.source_jar_id == jar_id, Transaction.destination_jar_id == jar_id))
            )
            if referenced:
                raise ConflictError(
                    f"Jar with ID {jar_id} is referenced by {referenced} transaction(s) and cannot be deleted"
                )
            await db.delete(jar)
    except IntegrityError as e:
        # A transfer referencing the jar committed between the check and the delete
        raise ConflictError(f"Jar with ID {jar_id} is referenced by transactions and cannot be deleted") from e
    logger.info(f"Deleted jar {jar_id}")
    return True


# ────────────────────────────────────────────────────────────────────────────────
# BALANCE PRIMITIVES (no commit)
# ────────────────────────────────────────────────────────────────────────────────
async def _credit(jar_id: int, amount: Decimal, db: AsyncSession) -> Jar:
    # The balance cap is part of the UPDATE itself
    try:
        result = await db.execute(
            update(Jar)
            .where(Jar.id == jar_id, Jar.current_balance + amount < MAX_AMOUNT)
            .values(current_balance=func.round(Jar.current_balance + amount, 2), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    except DataError as e:
        # Numeric overflow reported by the store
        raise ValidationError(f"Balance of jar {jar_id} would exceed {MAX_AMOUNT:,}") from e
    if result.rowcount == 0:
        jar = await db.get(Jar, jar_id, populate_existing=True)
        if jar is None:
            raise NotFoundError(f"Jar with ID {jar_id} not found")
        raise ValidationError(f"Balance of jar {jar.name} would exceed {MAX_AMOUNT:,}")
    return await db.get(Jar, jar_id, populate_existing=True)

async def _debit(jar_id: int, amount: Decimal, db: AsyncSession) -> Jar:
    # The balance check is part of the UPDATE itself
    result = await db.execute(
        update(Jar)
        .where(Jar.id == jar_id, Jar.current_balance >= amount)
        .values(current_balance=func.round(Jar.current_balance - amount, 2), updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        jar = await db.get(Jar, jar_id, populate_existing=True)
        if jar is None:
            raise NotFoundError(f"Jar with ID {jar_id} not found")
        raise InsufficientFundsError(
            f"Insufficient funds in jar {jar.name}",
            jar_id=jar_id,
            balance=jar.current_balance,
            requested=amount,
        )
    return await db.get(Jar, jar_id, populate_existing=True)


@with_db_retry()
async def deposit_to_jar(jar_id: int, amount: Any, db: AsyncSession) -> Jar:
    amount = to_positive_amount(amount)
    async with unit_of_work(db):
        jar = await _credit(jar_id, amount, db)
    logger.info(f"Deposited {amount} into jar {jar_id}; balance {jar.current_balance}")
    return jar

@with_db_retry()
async def withdraw_from_jar(jar_id: int, amount: Any, db: AsyncSession) -> Jar:
    amount = to_positive_amount(amount)
    async with unit_of_work(db):
        jar = await _debit(jar_id, amount, db)
    logger.info(f"Withdrew {amount} from jar {jar_id}; balance {jar.current_balance}")
    return jar


# ────────────────────────────────────────────────────────────────────────────────
# BOOTSTRAP
# ────────────────────────────────────────────────────────────────────────────────
async def seed_default_jars(db: AsyncSession) -> List[Jar]:
    """Ensure the canonical jars exist; create missing ones.

    Returns the list of jars that were created (empty if none were needed).
    """
    result = await db.execute(select(Jar.name))
    existing_names_lower = {row[0].lower() for row in result.all()}

    jars_to_create: List[Jar] = []
    for jar in DEFAULT_JARS:
        if jar["name"].lower() not in existing_names_lower:
            jars_to_create.append(
                Jar(
                    name=jar["name"],
                    percentage=jar["percentage"],
                    description=jar["description"],
                    current_balance=Decimal("0.00"),
                    created_at=utcnow(),
                )
            )

    if jars_to_create:
        async with unit_of_work(db):
            db.add_all(jars_to_create)
        logger.info(f"Seeded {len(jars_to_create)} default jar(s)")

    return jars_to_create
