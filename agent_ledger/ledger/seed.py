"""
Seed roster and reference expenses.

The agents are shared by the in-memory store and the relational
provisioning step; the expenses seed the in-memory store only.
"""

from datetime import datetime, timezone

from agent_ledger.models.ledger import Agent, Expense


SEED_AGENTS: tuple[Agent, ...] = (
    Agent(id="agent-atlas", name="Atlas", starting_minor=250_000),
    Agent(id="agent-beacon", name="Beacon", starting_minor=180_000),
    Agent(id="agent-cipher", name="Cipher", starting_minor=220_000),
)


def _at(year: int, month: int, day: int, hour: int, minute: int) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


SEED_EXPENSES: tuple[Expense, ...] = (
    Expense(
        id="exp-001",
        agent_id="agent-atlas",
        agent_name="Atlas",
        category="software",
        vendor="OpenAI",
        description="Model usage credits",
        amount_minor=18_400,
        occurred_at=_at(2026, 2, 20, 16, 12),
    ),
    Expense(
        id="exp-002",
        agent_id="agent-beacon",
        agent_name="Beacon",
        category="infrastructure",
        vendor="AWS",
        description="Compute instances",
        amount_minor=29_900,
        occurred_at=_at(2026, 2, 18, 9, 5),
    ),
    Expense(
        id="exp-003",
        agent_id="agent-cipher",
        agent_name="Cipher",
        category="travel",
        vendor="Delta",
        description="Hackathon travel",
        amount_minor=44_500,
        occurred_at=_at(2026, 2, 15, 11, 42),
    ),
    Expense(
        id="exp-004",
        agent_id="agent-atlas",
        agent_name="Atlas",
        category="operations",
        vendor="Notion",
        description="Workspace subscription",
        amount_minor=5_000,
        occurred_at=_at(2026, 2, 12, 10, 17),
    ),
    Expense(
        id="exp-005",
        agent_id="agent-cipher",
        agent_name="Cipher",
        category="software",
        vendor="Linear",
        description="Issue tracking seats",
        amount_minor=6_800,
        occurred_at=_at(2026, 2, 11, 13, 20),
    ),
    Expense(
        id="exp-006",
        agent_id="agent-beacon",
        agent_name="Beacon",
        category="operations",
        vendor="Slack",
        description="Comms plan",
        amount_minor=3_100,
        occurred_at=_at(2026, 2, 8, 18, 30),
    ),
    Expense(
        id="exp-007",
        agent_id="agent-atlas",
        agent_name="Atlas",
        category="travel",
        vendor="Marriott",
        description="Project kickoff lodging",
        amount_minor=21_300,
        occurred_at=_at(2026, 2, 5, 21, 0),
    ),
    Expense(
        id="exp-008",
        agent_id="agent-beacon",
        agent_name="Beacon",
        category="infrastructure",
        vendor="Cloudflare",
        description="Edge traffic",
        amount_minor=8_400,
        occurred_at=_at(2026, 2, 3, 7, 44),
    ),
    Expense(
        id="exp-009",
        agent_id="agent-cipher",
        agent_name="Cipher",
        category="operations",
        vendor="Figma",
        description="Design seat",
        amount_minor=4_500,
        occurred_at=_at(2026, 1, 30, 10, 58),
    ),
    Expense(
        id="exp-010",
        agent_id="agent-atlas",
        agent_name="Atlas",
        category="software",
        vendor="GitHub",
        description="Enterprise add-ons",
        amount_minor=7_200,
        occurred_at=_at(2026, 1, 26, 15, 25),
    ),
)
