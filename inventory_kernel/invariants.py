"""
Kernel Invariants Contract.

These invariants are structural law for the stock ledger. Configuration may
relax exactly one of them (NON_NEGATIVE_STOCK, via allow_negative_stock);
the rest hold unconditionally.

This module exists solely to declare the invariants explicitly. The
enforcement is distributed across the validator, BalanceApplier,
MovementService and the stock_balances unique constraint.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Invariants enforced by the inventory kernel."""

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """No balance row may drop below zero unless allow_negative_stock is
    set. Enforced by BalanceApplier against the locked, freshly read row."""

    SINGLE_BALANCE_ROW = "single_balance_row"
    """At most one balance row per (item, warehouse, location-or-null).
    Enforced by the uq_stock_balance_key constraint."""

    ATOMIC_APPLICATION = "atomic_application"
    """A movement's deltas are applied all-or-nothing together with its
    status flip. Enforced by MovementService via a SAVEPOINT."""

    CONFIRM_ONCE = "confirm_once"
    """A movement changes balances at most once: only DRAFT movements can be
    confirmed and CONFIRMED is terminal."""

    TERMINAL_STATES = "terminal_states"
    """CONFIRMED and CANCELED have no outgoing transitions. Declared by
    MOVEMENT_TRANSITIONS in domain.movement."""

    DECIMAL_QUANTITIES = "decimal_quantities"
    """Quantities are Decimal with 3 fractional digits and costs with 2.
    Float never appears in the quantity or cost path."""


# Invariants that configuration is allowed to relax.
CONFIGURABLE_INVARIANTS: frozenset[KernelInvariant] = frozenset({
    KernelInvariant.NON_NEGATIVE_STOCK,
})

ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The pure domain package may not import from these packages.
# Enforced by tests/architecture/test_domain_purity.py.
FORBIDDEN_DOMAIN_IMPORTS: tuple[str, ...] = (
    "inventory_kernel.db",
    "inventory_kernel.models",
    "inventory_kernel.services",
    "inventory_kernel.selectors",
    "sqlalchemy",
)
