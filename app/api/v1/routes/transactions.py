# app/api/v1/routes/transactions.py
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.schemas.transaction import TransactionCreate, TransactionRead, TransferRequest
from app.schemas.pagination import Page, PaginationParams
from app.crud.transaction import (
    create_transaction,
    get_transaction_by_id,
    get_transactions,
    get_transactions_by_date_range,
    get_transactions_by_jar,
    get_transactions_page,
    transfer_money,
)
from app.core.database import get_async_session
from app.api.deps import get_pagination

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _to_page(items: List[TransactionRead], total: int, paging: PaginationParams) -> Page[TransactionRead]:
    return Page[TransactionRead](
        data=items,
        current_page=paging.page,
        page_size=paging.page_size,
        total_count=total,
    )

@router.get("", response_model=List[TransactionRead])
async def read_transactions(db: AsyncSession = Depends(get_async_session)):
    return await get_transactions(db)

@router.get("/paged", response_model=Page[TransactionRead])
async def read_transactions_paged(
    paging: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_async_session),
):
    items, total = await get_transactions_page(paging.page, paging.page_size, db)
    return _to_page(items, total, paging)

@router.get("/daterange", response_model=Page[TransactionRead])
async def read_transactions_by_date_range(
    start_date: datetime = Query(..., description="Inclusive lower bound (ISO 8601)"),
    end_date: datetime = Query(..., description="Inclusive upper bound (ISO 8601)"),
    paging: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_async_session),
):
    items, total = await get_transactions_by_date_range(start_date, end_date, paging.page, paging.page_size, db)
    return _to_page(items, total, paging)

@router.get("/jar/{jar_id}", response_model=Page[TransactionRead])
async def read_transactions_by_jar(
    jar_id: int,
    paging: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_async_session),
):
    items, total = await get_transactions_by_jar(jar_id, paging.page, paging.page_size, db)
    return _to_page(items, total, paging)

@router.get("/{transaction_id}", response_model=TransactionRead)
async def read_transaction(transaction_id: int, db: AsyncSession = Depends(get_async_session)):
    tx = await get_transaction_by_id(transaction_id, db)
    if not tx:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return tx

@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
async def create_transaction_endpoint(tx_in: TransactionCreate, db: AsyncSession = Depends(get_async_session)):
    # Raw ledger append for imports; balances are left alone
    tx = await create_transaction(
        tx_in.source_jar_id,
        tx_in.destination_jar_id,
        tx_in.amount,
        tx_in.description,
        db,
        transaction_date=tx_in.transaction_date,
    )
    return await get_transaction_by_id(tx.id, db)

@router.post("/transfer", response_model=TransactionRead)
async def transfer_endpoint(transfer_in: TransferRequest, db: AsyncSession = Depends(get_async_session)):
    tx = await transfer_money(
        transfer_in.source_jar_id,
        transfer_in.destination_jar_id,
        transfer_in.amount,
        transfer_in.description,
        db,
    )
    return await get_transaction_by_id(tx.id, db)
