"""Domain layer for ledgerbook: entities, ledger operations and services."""
