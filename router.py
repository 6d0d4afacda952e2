from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from typing import List

import crud
from auth import get_current_user
from database import get_db, User
from errors import NotFoundError
from logger import get_logger
from schemas import (
    ExpenseOut,
    ExpenseSchema,
    ExpenseUpdate,
    MonthlyExpenseOut,
    MonthlyExpenseSchema,
    MonthlyExpenseWithCashOnHand,
)


router = APIRouter()
log = get_logger(__name__)


def _not_found(error: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


# expenses


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense: ExpenseSchema,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        db_expense = crud.create_expense(db, expense, user_id=current_user.id)
    except NotFoundError as e:
        raise _not_found(e)

    log.info(
        "expense_created",
        expense_id=db_expense.id,
        monthly_expense_id=db_expense.monthly_expense_id,
        user_id=current_user.id,
    )
    return db_expense


@router.put("/{expense_id}", response_model=ExpenseOut)
async def update_expense(
    expense_id: str,
    expense: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        db_expense = crud.update_expense(
            db, expense_id, expense, user_id=current_user.id
        )
    except NotFoundError as e:
        raise _not_found(e)

    log.info(
        "expense_updated",
        expense_id=expense_id,
        fields=sorted(expense.model_fields_set),
        user_id=current_user.id,
    )
    return db_expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        crud.delete_expense(db, expense_id, user_id=current_user.id)
    except NotFoundError as e:
        raise _not_found(e)

    log.info("expense_deleted", expense_id=expense_id, user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# monthly expenses


@router.post(
    "/month-expense",
    response_model=MonthlyExpenseOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_monthly_expense(
    monthly_expense: MonthlyExpenseSchema,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if str(monthly_expense.user_id) != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot create a monthly expense for another user",
        )

    db_monthly_expense = crud.create_monthly_expense(
        db, monthly_expense, user_id=current_user.id
    )
    log.info(
        "monthly_expense_created",
        monthly_expense_id=db_monthly_expense.id,
        user_id=current_user.id,
    )
    return db_monthly_expense


@router.get("/monthly-expense", response_model=MonthlyExpenseWithCashOnHand)
async def get_monthly_expense(
    monthly_expense_id: str = Query(..., alias="id"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return crud.get_monthly_expense(db, monthly_expense_id, user_id=current_user.id)
    except NotFoundError as e:
        raise _not_found(e)


@router.get("/monthly-expenses", response_model=List[MonthlyExpenseWithCashOnHand])
async def get_monthly_expenses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_monthly_expenses(db, user_id=current_user.id)
