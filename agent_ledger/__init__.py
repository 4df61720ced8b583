"""
Agent Ledger - Source Package

A small financial ledger of agent spending and balances, exposed as
remote-callable tools plus a read-only dashboard.

DESIGN PRINCIPLES:
1. Money is integer minor units, always
2. Fail early, fail with a typed kind
3. Every backend behaves identically at the contract boundary
4. Every write is traceable
5. Backend is swappable
"""

__version__ = "1.1.0"
__author__ = "Agent Ledger Team"
