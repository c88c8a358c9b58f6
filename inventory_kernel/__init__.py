"""
Inventory Kernel - stock movement ledger

A balance-mutation engine for municipal warehouse inventory with:
- Structural validation of movements before persistence
- Deterministic per-location stock deltas
- Atomic, lock-protected balance application
- Draft / confirmed / canceled movement lifecycle
- Reorder alerts and an audit trail
"""

__version__ = "0.1.0"
