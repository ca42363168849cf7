"""
Database package for Welcomer.

Public API:
    - join_ledger: Global JoinLedger instance
    - JoinLedger: Idempotent join number assignment
    - DatabaseConnectionContext: Per-operation aiosqlite connection
"""
