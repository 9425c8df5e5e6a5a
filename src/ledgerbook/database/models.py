"""SQLAlchemy models for ledgerbook database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Text,
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Internal account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    business_id = Column(Integer, nullable=True)
    balance = Column(Numeric(14, 2), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_archived = Column(Boolean, default=False, nullable=False)


class Person(Base):
    """External counterparty model."""

    __tablename__ = "persons"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    memo = Column(String, nullable=True)
    business_id = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_archived = Column(Boolean, default=False, nullable=False)


class Lending(Base):
    """Lending model.

    ``person_id`` is the legacy counterparty column; rows using it are
    normalized to ``counterparty_type``/``counterparty_id`` on load.
    """

    __tablename__ = "lendings"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    counterparty_type = Column(String, nullable=True)
    counterparty_id = Column(Integer, nullable=True)
    person_id = Column(Integer, nullable=True)
    type = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False)
    memo = Column(String, nullable=True)
    returned = Column(Boolean, default=False, nullable=False)
    original_id = Column(Integer, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=True)
    created_by_user_id = Column(Integer, nullable=True)
    last_edited_by_user_id = Column(Integer, nullable=True)
    last_edited_at = Column(DateTime, nullable=True)


class AccountTransaction(Base):
    """Account transaction model (transfer, interest, gain, deposit, withdrawal)."""

    __tablename__ = "account_transactions"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    from_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    to_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False)
    memo = Column(String, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    linked_transaction_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=True)
    created_by_user_id = Column(Integer, nullable=True)
    last_edited_by_user_id = Column(Integer, nullable=True)
    last_edited_at = Column(DateTime, nullable=True)


class Transaction(Base):
    """Managerial-accounting transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    business_id = Column(Integer, nullable=True)
    account_id = Column(Integer, nullable=True)
    category = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(Date, nullable=False)
    memo = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=True)


class LendingHistory(Base):
    """Append-only lending audit log."""

    __tablename__ = "lending_histories"

    id = Column(Integer, primary_key=True)
    lending_id = Column(Integer, ForeignKey("lendings.id"), nullable=False)
    action = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    changes = Column(Text, nullable=True)
    user_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class AccountTransactionHistory(Base):
    """Append-only account transaction audit log."""

    __tablename__ = "account_transaction_histories"

    id = Column(Integer, primary_key=True)
    account_transaction_id = Column(
        Integer, ForeignKey("account_transactions.id"), nullable=False
    )
    action = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    changes = Column(Text, nullable=True)
    user_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
