"""
Persistence operations for users, monthly budgets and expenses.

Every function takes the SQLAlchemy session explicitly and works on a single
row per write. Lookups that find nothing raise NotFoundError; constraint
violations are rolled back and re-raised as IntegrityError.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from database import Expense, MonthlyExpense, User
from errors import NotFoundError
from schemas import (
    ExpenseOut,
    ExpenseSchema,
    ExpenseUpdate,
    MonthlyExpenseOut,
    MonthlyExpenseSchema,
    MonthlyExpenseWithCashOnHand,
    UserSchema,
)


def _as_utc(value: datetime) -> datetime:
    # stored without tzinfo, always UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise


# users


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == str(user_id)).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, data: UserSchema) -> User:
    email = data.email.lower()
    password = generate_password_hash(data.password) if data.password else None

    db_user = User(
        first_name=data.first_name or "",
        last_name=data.last_name or "",
        mobile=data.mobile,
        email=email,
        password=password,
        auth_id=data.auth_id or f"local|{email}",
    )
    db.add(db_user)
    _commit(db)
    db.refresh(db_user)
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    db_user = get_user_by_email(db, email)
    if not db_user or not db_user.password:
        return None
    if not check_password_hash(db_user.password, password):
        return None
    return db_user


# expenses


def _get_owned_monthly_expense(
    db: Session, monthly_expense_id: str, user_id: str
) -> MonthlyExpense:
    monthly_expense = (
        db.query(MonthlyExpense)
        .filter(
            MonthlyExpense.id == str(monthly_expense_id),
            MonthlyExpense.user_id == str(user_id),
        )
        .first()
    )
    if monthly_expense is None:
        raise NotFoundError("Monthly expense", monthly_expense_id)
    return monthly_expense


def get_expense(db: Session, expense_id: str, user_id: str) -> Expense:
    db_expense = (
        db.query(Expense)
        .join(MonthlyExpense, Expense.monthly_expense_id == MonthlyExpense.id)
        .filter(Expense.id == str(expense_id), MonthlyExpense.user_id == str(user_id))
        .first()
    )
    if db_expense is None:
        raise NotFoundError("Expense", expense_id)
    return db_expense


def create_expense(db: Session, data: ExpenseSchema, user_id: str) -> Expense:
    _get_owned_monthly_expense(db, data.monthly_expense_id, user_id)

    db_expense = Expense(
        description=data.description,
        category=data.category,
        amount=data.amount,
        date=_as_utc(data.date),
        monthly_expense_id=str(data.monthly_expense_id),
    )
    db.add(db_expense)
    _commit(db)
    db.refresh(db_expense)
    return db_expense


def update_expense(
    db: Session, expense_id: str, data: ExpenseUpdate, user_id: str
) -> Expense:
    db_expense = get_expense(db, expense_id, user_id)

    changes = data.model_dump(exclude_unset=True)
    if "date" in changes:
        changes["date"] = _as_utc(changes["date"])
    if "monthly_expense_id" in changes:
        # moving an expense is only allowed between the caller's own budgets
        _get_owned_monthly_expense(db, changes["monthly_expense_id"], user_id)
        changes["monthly_expense_id"] = str(changes["monthly_expense_id"])

    for field, value in changes.items():
        setattr(db_expense, field, value)

    _commit(db)
    db.refresh(db_expense)
    return db_expense


def delete_expense(db: Session, expense_id: str, user_id: str) -> None:
    db_expense = get_expense(db, expense_id, user_id)
    db.delete(db_expense)
    _commit(db)


# monthly expenses


def cash_on_hand(monthly_expense: MonthlyExpense) -> float:
    return monthly_expense.budget_goal - sum(
        expense.amount for expense in monthly_expense.expenses
    )


def _with_cash_on_hand(monthly_expense: MonthlyExpense) -> MonthlyExpenseWithCashOnHand:
    base = MonthlyExpenseOut.model_validate(monthly_expense)
    return MonthlyExpenseWithCashOnHand(
        **base.model_dump(),
        expenses=[ExpenseOut.model_validate(e) for e in monthly_expense.expenses],
        cash_on_hand=cash_on_hand(monthly_expense),
    )


def create_monthly_expense(
    db: Session, data: MonthlyExpenseSchema, user_id: str
) -> MonthlyExpense:
    db_monthly_expense = MonthlyExpense(
        month=data.month,
        budget_goal=data.budget_goal,
        user_id=str(user_id),
    )
    db.add(db_monthly_expense)
    _commit(db)
    db.refresh(db_monthly_expense)
    return db_monthly_expense


def get_monthly_expense(
    db: Session, monthly_expense_id: str, user_id: str
) -> MonthlyExpenseWithCashOnHand:
    monthly_expense = _get_owned_monthly_expense(db, monthly_expense_id, user_id)
    return _with_cash_on_hand(monthly_expense)


def get_monthly_expenses(
    db: Session, user_id: str
) -> List[MonthlyExpenseWithCashOnHand]:
    monthly_expenses = (
        db.query(MonthlyExpense)
        .filter(MonthlyExpense.user_id == str(user_id))
        .order_by(MonthlyExpense.month, MonthlyExpense.created_at)
        .all()
    )
    return [_with_cash_on_hand(m) for m in monthly_expenses]
