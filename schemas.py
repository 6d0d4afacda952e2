from pydantic import BaseModel, BeforeValidator, EmailStr, confloat, constr, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Annotated, List, Optional
import re
from uuid import UUID

from database import ExpenseCategory

ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


def _iso_datetime_string(value):
    if isinstance(value, str) and ISO_DATETIME.match(value):
        return value
    raise ValueError("must be an ISO 8601 datetime string")


# JSON numbers only, no numeric strings
PositiveAmount = confloat(gt=0, strict=True)
IsoDatetime = Annotated[datetime, BeforeValidator(_iso_datetime_string)]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class PartialModel(CamelModel):
    """Every field is optional, but a field that is sent may not be null."""

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class UserSchema(BaseModel):
    id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    mobile: constr(strip_whitespace=True, min_length=1)
    password: Optional[str] = None
    auth_id: Optional[str] = None
    email: EmailStr
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class UserOut(BaseModel):
    id: UUID
    email: EmailStr

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MonthlyExpenseSchema(CamelModel):
    id: Optional[UUID] = None
    month: int
    budget_goal: PositiveAmount
    user_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class ExpenseSchema(CamelModel):
    id: Optional[UUID] = None
    description: str
    category: ExpenseCategory
    amount: PositiveAmount
    date: IsoDatetime
    monthly_expense_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class ExpenseUpdate(PartialModel):
    description: Optional[str] = None
    category: Optional[ExpenseCategory] = None
    amount: Optional[PositiveAmount] = None
    date: Optional[IsoDatetime] = None
    monthly_expense_id: Optional[UUID] = None


class ExpenseOut(ExpenseSchema):
    id: UUID
    date: datetime
    created_at: datetime
    updated_at: datetime


class MonthlyExpenseOut(MonthlyExpenseSchema):
    id: UUID
    created_at: datetime
    updated_at: datetime


class MonthlyExpenseWithCashOnHand(MonthlyExpenseOut):
    expenses: List[ExpenseOut] = []
    cash_on_hand: float
