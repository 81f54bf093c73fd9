from decimal import Decimal

import pytest

from app.core.exceptions import ConflictError, InsufficientFundsError, NotFoundError, ValidationError
from app.crud.jar import (
    DEFAULT_JARS,
    create_jar,
    delete_jar,
    deposit_to_jar,
    get_jar_balance,
    get_jar_by_id,
    get_jars,
    get_jars_page,
    seed_default_jars,
    update_jar,
    withdraw_from_jar,
)
from app.crud.transaction import transfer_money
from app.models.jar import Jar


class TestSeeding:
    async def test_seeds_six_canonical_jars_at_zero(self, db, jars):
        all_jars = await get_jars(db)
        assert [j.name for j in all_jars] == [j["name"] for j in DEFAULT_JARS]
        assert all(j.current_balance == Decimal("0") for j in all_jars)
        assert sum(j.percentage for j in all_jars) == Decimal("100")

    async def test_seeding_is_idempotent(self, db, jars):
        assert await seed_default_jars(db) == []
        assert len(await get_jars(db)) == 6


class TestMetadata:
    async def test_create_starts_at_zero(self, db):
        created = await create_jar("Travel", Decimal("5"), "Trips", db)
        assert created.id is not None
        assert await get_jar_balance(created.id, db) == Decimal("0.00")
        assert created.updated_at is None

    @pytest.mark.parametrize(
        "name, percentage, description",
        [
            ("", 10, "x"),
            ("   ", 10, "x"),
            ("n" * 51, 10, "x"),
            ("Travel", -1, "x"),
            ("Travel", 100.01, "x"),
            ("Travel", 10, "d" * 501),
        ],
    )
    async def test_create_rejects_bad_metadata(self, db, name, percentage, description):
        with pytest.raises(ValidationError):
            await create_jar(name, percentage, description, db)
        assert await get_jars(db) == []

    async def test_update_replaces_metadata_but_not_balance(self, db, jars):
        await deposit_to_jar(jars["Play"], 40, db)
        updated = await update_jar(jars["Play"], "Fun", 15, "Games and films", db)
        assert updated.name == "Fun"
        assert updated.percentage == Decimal("15")
        assert updated.updated_at is not None
        assert await get_jar_balance(jars["Play"], db) == Decimal("40.00")

    async def test_update_missing_jar(self, db):
        with pytest.raises(NotFoundError):
            await update_jar(999, "Ghost", 0, "", db)

    async def test_delete_unused_jar(self, db):
        created = await create_jar("Temp", 0, "", db)
        assert await delete_jar(created.id, db) is True
        assert await get_jar_by_id(created.id, db) is None

    async def test_delete_missing_jar_returns_false(self, db):
        assert await delete_jar(999, db) is False

    async def test_delete_jar_with_history_is_blocked(self, db, jars):
        await deposit_to_jar(jars["Play"], 10, db)
        await transfer_money(jars["Play"], jars["Give"], 5, "gift", db)
        for name in ("Play", "Give"):
            with pytest.raises(ConflictError):
                await delete_jar(jars[name], db)
            assert await get_jar_by_id(jars[name], db) is not None


class TestBalances:
    async def test_deposit_then_balance(self, db):
        play = await create_jar("Play", 10, "", db)
        await deposit_to_jar(play.id, 100, db)
        assert await get_jar_balance(play.id, db) == Decimal("100.00")

    async def test_deposit_returns_fresh_jar(self, db, jars):
        jar = await deposit_to_jar(jars["Give"], "12.34", db)
        assert jar.current_balance == Decimal("12.34")
        jar = await deposit_to_jar(jars["Give"], Decimal("0.66"), db)
        assert jar.current_balance == Decimal("13.00")

    @pytest.mark.parametrize("amount", [0, -5, "abc", "1.005", float("nan")])
    async def test_rejects_bad_amounts(self, db, jars, amount):
        with pytest.raises(ValidationError):
            await deposit_to_jar(jars["Play"], amount, db)
        with pytest.raises(ValidationError):
            await withdraw_from_jar(jars["Play"], amount, db)
        assert await get_jar_balance(jars["Play"], db) == Decimal("0")

    async def test_missing_jar(self, db):
        with pytest.raises(NotFoundError):
            await deposit_to_jar(999, 1, db)
        with pytest.raises(NotFoundError):
            await withdraw_from_jar(999, 1, db)
        with pytest.raises(NotFoundError):
            await get_jar_balance(999, db)

    async def test_withdraw_down_to_zero(self, db, jars):
        await deposit_to_jar(jars["Education"], 25, db)
        jar = await withdraw_from_jar(jars["Education"], 25, db)
        assert jar.current_balance == Decimal("0")

    async def test_overdraw_is_rejected_and_leaves_balance(self, db, jars):
        await deposit_to_jar(jars["Education"], 20, db)
        with pytest.raises(InsufficientFundsError) as excinfo:
            await withdraw_from_jar(jars["Education"], "20.01", db)
        assert excinfo.value.balance == Decimal("20.00")
        assert excinfo.value.requested == Decimal("20.01")
        assert await get_jar_balance(jars["Education"], db) == Decimal("20.00")

    async def test_cent_arithmetic_stays_exact(self, db, jars):
        for _ in range(10):
            await deposit_to_jar(jars["Play"], "0.10", db)
        await withdraw_from_jar(jars["Play"], "0.30", db)
        await withdraw_from_jar(jars["Play"], "0.70", db)
        assert await get_jar_balance(jars["Play"], db) == Decimal("0")

    async def test_repeated_reads_are_identical(self, db, jars):
        await deposit_to_jar(jars["Play"], 7, db)
        first = await get_jar_by_id(jars["Play"], db)
        snapshot = (first.id, first.name, first.percentage, first.description, first.current_balance)
        second = await get_jar_by_id(jars["Play"], db)
        assert (second.id, second.name, second.percentage, second.description, second.current_balance) == snapshot

    @pytest.mark.parametrize("amount", ["12345678901234567.89", 1e20, "10000000000000"])
    async def test_rejects_amounts_beyond_the_cap(self, db, jars, amount):
        with pytest.raises(ValidationError):
            await deposit_to_jar(jars["Play"], amount, db)
        assert await get_jar_balance(jars["Play"], db) == Decimal("0")

    async def test_balance_cannot_grow_past_the_cap(self, db, jars):
        await deposit_to_jar(jars["Play"], "9999999999999.99", db)
        with pytest.raises(ValidationError):
            await deposit_to_jar(jars["Play"], 1, db)
        assert await get_jar_balance(jars["Play"], db) == Decimal("9999999999999.99")

    async def test_pending_changes_are_not_committed_with_a_deposit(self, session_factory, jars):
        async with session_factory() as db:
            db.add(Jar(name="Stray", percentage=Decimal("0"), description="", current_balance=Decimal("0.00")))
            with pytest.raises(RuntimeError):
                await deposit_to_jar(jars["Play"], 5, db)
            await db.rollback()

        async with session_factory() as db:
            assert "Stray" not in [j.name for j in await get_jars(db)]
            assert await get_jar_balance(jars["Play"], db) == Decimal("0")


class TestPaging:
    async def test_pages_in_id_order(self, db, jars):
        items, total = await get_jars_page(2, 4, db)
        assert total == 6
        assert [j.name for j in items] == ["Play", "Give"]

    async def test_page_below_one_and_oversized_page(self, db, jars):
        items, total = await get_jars_page(0, 500, db)
        assert total == 6
        assert len(items) == 6
        assert items[0].name == "Necessities"

    async def test_page_past_the_end_is_empty(self, db, jars):
        items, total = await get_jars_page(5, 10, db)
        assert items == []
        assert total == 6
