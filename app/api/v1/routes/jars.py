# app/api/v1/routes/jars.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.schemas.jar import JarBalance, JarCreate, JarRead, JarUpdate, MoneyMovement
from app.schemas.pagination import Page, PaginationParams
from app.crud.jar import (
    create_jar,
    delete_jar,
    deposit_to_jar,
    get_jar_balance,
    get_jar_by_id,
    get_jars,
    get_jars_page,
    update_jar,
    withdraw_from_jar,
)
from app.core.database import get_async_session
from app.api.deps import get_pagination

router = APIRouter(prefix="/jars", tags=["jars"])

@router.get("", response_model=List[JarRead])
async def read_jars(db: AsyncSession = Depends(get_async_session)):
    return await get_jars(db)

@router.get("/paged", response_model=Page[JarRead])
async def read_jars_paged(
    paging: PaginationParams = Depends(get_pagination),
    db: AsyncSession = Depends(get_async_session),
):
    jars, total = await get_jars_page(paging.page, paging.page_size, db)
    return Page[JarRead](
        data=[JarRead.model_validate(j) for j in jars],
        current_page=paging.page,
        page_size=paging.page_size,
        total_count=total,
    )

@router.get("/{jar_id}", response_model=JarRead)
async def read_jar(jar_id: int, db: AsyncSession = Depends(get_async_session)):
    jar = await get_jar_by_id(jar_id, db)
    if not jar:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Jar not found")
    return jar

@router.post("", response_model=JarRead, status_code=status.HTTP_201_CREATED)
async def create_jar_endpoint(jar_in: JarCreate, db: AsyncSession = Depends(get_async_session)):
    return await create_jar(jar_in.name, jar_in.percentage, jar_in.description, db)

@router.put("/{jar_id}", response_model=JarRead)
async def update_jar_endpoint(
    jar_id: int,
    jar_in: JarUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    return await update_jar(jar_id, jar_in.name, jar_in.percentage, jar_in.description, db)

@router.delete("/{jar_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_jar_endpoint(jar_id: int, db: AsyncSession = Depends(get_async_session)):
    if not await delete_jar(jar_id, db):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Jar not found")
    return None

@router.get("/{jar_id}/balance", response_model=JarBalance)
async def read_jar_balance(jar_id: int, db: AsyncSession = Depends(get_async_session)):
    balance = await get_jar_balance(jar_id, db)
    return JarBalance(jar_id=jar_id, balance=balance)

@router.post("/{jar_id}/add", response_model=JarRead)
async def add_money(jar_id: int, body: MoneyMovement, db: AsyncSession = Depends(get_async_session)):
    return await deposit_to_jar(jar_id, body.amount, db)

@router.post("/{jar_id}/remove", response_model=JarRead)
async def remove_money(jar_id: int, body: MoneyMovement, db: AsyncSession = Depends(get_async_session)):
    return await withdraw_from_jar(jar_id, body.amount, db)
