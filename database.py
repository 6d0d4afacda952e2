import enum
import uuid
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import (
    create_engine,
    event,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _new_id():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ExpenseCategory(str, enum.Enum):
    TRANSPORTATION = "TRANSPORTATION"
    GROCERY = "GROCERY"
    SCHOOL = "SCHOOL"
    CAR = "CAR"
    HOUSE = "HOUSE"
    TRAVEL = "TRAVEL"
    PERSONAL = "PERSONAL"
    KIDS = "KIDS"
    MISCELLANEOUS = "MISCELLANEOUS"


class TimestampMixin:
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class User(TimestampMixin, Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_new_id)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    mobile = Column(String, nullable=False)
    password = Column(String, nullable=True)
    auth_id = Column(String, unique=True, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)


class MonthlyExpense(TimestampMixin, Base):
    __tablename__ = "monthly_expenses"
    id = Column(String(36), primary_key=True, default=_new_id)
    month = Column(Integer, nullable=False)
    budget_goal = Column(Float, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)

    expenses = relationship(
        "Expense",
        back_populates="monthly_expense",
        order_by="Expense.date",
        lazy="selectin",
    )


class Expense(TimestampMixin, Base):
    __tablename__ = "expenses"
    id = Column(String(36), primary_key=True, default=_new_id)
    description = Column(String, nullable=False)
    category = Column(Enum(ExpenseCategory), index=True, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False)
    monthly_expense_id = Column(
        String(36), ForeignKey("monthly_expenses.id"), index=True, nullable=False
    )

    monthly_expense = relationship("MonthlyExpense", back_populates="expenses")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine and session factory shared by every request of one app."""

    def __init__(self, url: str):
        kwargs = {}
        is_sqlite = url.startswith("sqlite")
        if is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, **kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)

    def create_all(self):
        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
