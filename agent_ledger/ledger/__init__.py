"""
Ledger core: filter normalization, aggregation and the error taxonomy.

Import from the submodules directly (`agent_ledger.ledger.filters`, ...);
the models package depends on `agent_ledger.ledger.dates`.
"""
