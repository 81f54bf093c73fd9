import asyncio
from decimal import Decimal

import pytest

from app.core.exceptions import InsufficientFundsError
from app.crud.jar import deposit_to_jar, get_jar_balance, withdraw_from_jar
from app.crud.transaction import get_transactions, transfer_money


@pytest.mark.asyncio
async def test_concurrent_withdrawals_never_overdraw(session_factory, jars):
    amount = Decimal("10.00")
    attempts = 5
    async with session_factory() as db:
        await deposit_to_jar(jars["Play"], amount * (attempts - 1) + amount / 2, db)

    async def withdraw():
        async with session_factory() as db:
            return await withdraw_from_jar(jars["Play"], amount, db)

    results = await asyncio.gather(*(withdraw() for _ in range(attempts)), return_exceptions=True)

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientFundsError)
    async with session_factory() as db:
        balance = await get_jar_balance(jars["Play"], db)
    assert Decimal("0") <= balance < amount
    assert balance == Decimal("5.00")


@pytest.mark.asyncio
async def test_concurrent_transfers_conserve_money(session_factory, jars):
    async with session_factory() as db:
        await deposit_to_jar(jars["Necessities"], 100, db)
        await deposit_to_jar(jars["Play"], 100, db)

    async def move(source, dest):
        async with session_factory() as db:
            return await transfer_money(jars[source], jars[dest], 30, "rebalance", db)

    results = await asyncio.gather(
        move("Necessities", "Give"),
        move("Necessities", "Education"),
        move("Necessities", "Play"),
        move("Necessities", "Give"),
        move("Play", "Give"),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert all(isinstance(f, InsufficientFundsError) for f in failures)
    async with session_factory() as db:
        balances = {name: await get_jar_balance(jar_id, db) for name, jar_id in jars.items()}
        recorded = await get_transactions(db)
    assert sum(balances.values()) == Decimal("200.00")
    assert all(b >= 0 for b in balances.values())
    assert len(recorded) == len(results) - len(failures)
    # Necessities only covers three of its four outgoing transfers
    assert balances["Necessities"] == Decimal("10.00")
