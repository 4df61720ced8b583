"""
Relational ledger schema.

SQLAlchemy Core tables shared by provisioning and the relational provider.
Works on PostgreSQL (production) and SQLite (local runs and tests).
"""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    Uuid,
    func,
)


metadata = MetaData()


agents = Table(
    "agents",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("starting_minor", Integer, nullable=False),
    Column("currency", Text, nullable=False, server_default="USD"),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("starting_minor >= 0", name="agents_starting_minor_non_negative"),
    CheckConstraint("currency = 'USD'", name="agents_currency_usd"),
)


expenses = Table(
    "expenses",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "agent_id",
        Text,
        ForeignKey("agents.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("category", Text, nullable=False),
    Column("vendor", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("amount_minor", Integer, nullable=False),
    Column("currency", Text, nullable=False, server_default="USD"),
    Column("occurred_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("amount_minor > 0", name="expenses_amount_minor_positive"),
    CheckConstraint("currency = 'USD'", name="expenses_currency_usd"),
)


Index("expenses_occurred_at_desc_idx", expenses.c.occurred_at.desc())
Index(
    "expenses_agent_id_occurred_at_desc_idx",
    expenses.c.agent_id,
    expenses.c.occurred_at.desc(),
)
