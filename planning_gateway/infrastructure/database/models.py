"""SQLAlchemy ORM models for debts, schedules, monthly plans and the ledger outbox"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    Float,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class DebtAccount(Base):
    """Debt terms and running balance"""

    __tablename__ = "debt_account"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    principal_cents = Column(BigInteger, nullable=False)
    interest_rate = Column(Float, nullable=False)
    min_monthly_payment_cents = Column(BigInteger, nullable=False)
    due_day = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    current_balance_cents = Column(BigInteger, nullable=False)
    schedule_generated_at = Column(DateTime(timezone=True), nullable=True)
    last_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Optimistic locking: concurrent regenerate/confirm on one debt cannot both commit
    __mapper_args__ = {"version_id_col": version}

    schedule_entries = relationship(
        "DebtPaymentSchedule",
        back_populates="debt_account",
        cascade="all, delete-orphan",
        order_by="DebtPaymentSchedule.due_date",
    )
    reminders = relationship("PaymentReminder", back_populates="debt_account", cascade="all, delete-orphan")


class DebtPaymentSchedule(Base):
    """One planned (or completed) payment of a debt"""

    __tablename__ = "debt_payment_schedule"
    __table_args__ = (UniqueConstraint("debt_account_id", "due_date", name="uq_schedule_debt_due_date"),)

    id = Column(String(36), primary_key=True, default=new_id)
    debt_account_id = Column(String(36), ForeignKey("debt_account.id", ondelete="CASCADE"), nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    planned_payment_cents = Column(BigInteger, nullable=False)
    planned_interest_cents = Column(BigInteger, nullable=False)
    planned_principal_cents = Column(BigInteger, nullable=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    ledger_event_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    debt_account = relationship("DebtAccount", back_populates="schedule_entries")
    reminder = relationship(
        "PaymentReminder", back_populates="schedule_entry", uselist=False, cascade="all, delete-orphan"
    )


class PaymentReminder(Base):
    """Reminder raised for an upcoming debt payment"""

    __tablename__ = "payment_reminder"

    id = Column(String(36), primary_key=True, default=new_id)
    debt_account_id = Column(String(36), ForeignKey("debt_account.id", ondelete="CASCADE"), nullable=False)
    schedule_entry_id = Column(
        String(36), ForeignKey("debt_payment_schedule.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    title = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    due_at = Column(DateTime, nullable=False, index=True)
    status = Column(Text, nullable=False, default="scheduled")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    debt_account = relationship("DebtAccount", back_populates="reminders")
    schedule_entry = relationship("DebtPaymentSchedule", back_populates="reminder")


class MonthlyPlan(Base):
    """Monthly plan; totals are derived from its planned items"""

    __tablename__ = "monthly_plan"

    id = Column(String(36), primary_key=True, default=new_id)
    month = Column(Date, nullable=False, unique=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    incomes = relationship("PlannedIncome", back_populates="plan", cascade="all, delete-orphan")
    expenses = relationship("PlannedExpense", back_populates="plan", cascade="all, delete-orphan")
    savings = relationship("PlannedSaving", back_populates="plan", cascade="all, delete-orphan")


class PlannedIncome(Base):
    """Expected income within a monthly plan"""

    __tablename__ = "planned_income"

    id = Column(String(36), primary_key=True, default=new_id)
    monthly_plan_id = Column(String(36), ForeignKey("monthly_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    source_name = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    is_fixed = Column(Boolean, nullable=False, default=True)
    expected_date = Column(Date, nullable=True)
    expected_amount_cents = Column(BigInteger, nullable=False)
    actual_amount_cents = Column(BigInteger, nullable=False, default=0)
    account_id = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="planned")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    plan = relationship("MonthlyPlan", back_populates="incomes")


class PlannedExpense(Base):
    """Expected expense within a monthly plan"""

    __tablename__ = "planned_expense"

    id = Column(String(36), primary_key=True, default=new_id)
    monthly_plan_id = Column(String(36), ForeignKey("monthly_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Text, nullable=True)
    label = Column(Text, nullable=False)
    expected_amount_cents = Column(BigInteger, nullable=False)
    actual_amount_cents = Column(BigInteger, nullable=False, default=0)
    frequency = Column(Text, nullable=False, default="once")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    plan = relationship("MonthlyPlan", back_populates="expenses")


class PlannedSaving(Base):
    """Expected saving within a monthly plan"""

    __tablename__ = "planned_saving"

    id = Column(String(36), primary_key=True, default=new_id)
    monthly_plan_id = Column(String(36), ForeignKey("monthly_plan.id", ondelete="CASCADE"), nullable=False, index=True)
    goal_id = Column(Text, nullable=True)
    expected_amount_cents = Column(BigInteger, nullable=False)
    actual_amount_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    plan = relationship("MonthlyPlan", back_populates="savings")


class OutboundWebhook(Base):
    """Webhook delivery queue with retry tracking"""

    __tablename__ = "outbound_webhook"

    id = Column(String(36), primary_key=True, default=new_id)
    event_type = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False)
    target_url = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
