"""
MovementService -- movement lifecycle: create, confirm, cancel.

Responsibility:
    Persists validated DRAFT movements, confirms them by applying their
    deltas to the balance store, and cancels drafts.  Every state change is
    reported to the audit sink.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes the pure validator and
    delta computer, BalanceApplier and an AuditSink.

Invariants enforced:
    - Lifecycle: DRAFT -> CONFIRMED and DRAFT -> CANCELED only.  CONFIRMED
      and CANCELED are terminal.
    - Confirm-once: the movement row is locked (SELECT ... FOR UPDATE) and
      its status re-read before the transition, so two concurrent confirms
      apply the deltas exactly once.
    - Atomic confirmation: lock, re-validate, compute deltas, apply, flip
      status and audit all run inside one SAVEPOINT.  Any failure leaves
      the movement DRAFT and every balance unchanged.
    - Drafts and cancellations never touch balances.

Failure modes:
    - MovementValidationError subclasses on create (and on confirm, if the
      stored movement no longer validates).
    - MovementNotFoundError, InvalidTransitionError, AlreadyCanceledError,
      ConfirmedImmutableError on confirm/cancel.
    - InsufficientStockError from BalanceApplier on confirm.

Audit relevance:
    CREATE carries the new snapshot; CONFIRM and CANCEL carry before/after
    snapshots.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.audit import AuditAction, AuditSink
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.deltas import compute_deltas, net_deltas
from inventory_kernel.domain.movement import (
    LineInput,
    MovementHeader,
    MovementStatus,
    MovementType,
    TERMINAL_MOVEMENT_STATUSES,
    can_transition,
    coerce_direction,
)
from inventory_kernel.domain.validation import validate_movement, validate_submission
from inventory_kernel.domain.values import line_total_cost, round_cost, round_quantity
from inventory_kernel.exceptions import (
    AlreadyCanceledError,
    ConfirmedImmutableError,
    InvalidTransitionError,
    MovementNotFoundError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.movement import Movement, MovementLine
from inventory_kernel.services.balance_applier import BalanceApplier
from inventory_kernel.services.base import BaseService

logger = get_logger("services.movement")

MOVEMENT_ENTITY = "Movement"


class MovementService(BaseService[Movement]):
    """
    Movement lifecycle manager.

    Contract:
        Methods flush inside the caller's transaction and return the
        Movement row.  The caller commits.

    Non-goals:
        - Does NOT check permissions; ``created_by`` / ``approved_by`` /
          ``user_id`` are trusted identities.
        - Does NOT verify that referenced items, warehouses and locations
          exist beyond the storage foreign keys.
    """

    def __init__(
        self,
        session: Session,
        applier: BalanceApplier,
        auditor: AuditSink | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._applier = applier
        self._auditor = auditor
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _audit(
        self,
        movement: Movement,
        action: AuditAction,
        before: dict | None,
        user_id: UUID | None,
    ) -> None:
        if self._auditor is None:
            return
        self._auditor.log_audit(
            MOVEMENT_ENTITY,
            movement.id,
            action,
            data_before=before,
            data_after=movement.to_snapshot(),
            user_id=user_id,
        )

    def _load_for_update(self, movement_id: UUID) -> Movement:
        movement = self._lock_one(Movement, Movement.id == movement_id)
        if movement is None:
            raise MovementNotFoundError(str(movement_id))
        return movement

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def validate(self, header: MovementHeader, lines: Sequence[LineInput]) -> MovementType:
        """Pre-submission structural check.  No I/O."""
        return validate_movement(header, lines)

    def create(
        self,
        header: MovementHeader,
        lines: Sequence[LineInput],
        created_by: UUID,
    ) -> Movement:
        """
        Persist a new DRAFT movement with its lines.

        Quantities are stored at 3 places and costs at 2; ``total_cost`` is
        unit_cost x quantity for lines that carry a unit cost.

        Raises:
            MovementValidationError: If the movement is structurally invalid
                or is an ADJUSTMENT without a reason.
        """
        movement_type = validate_submission(header, lines)
        now = self._clock.now()

        with self.session.begin_nested():
            movement = Movement(
                movement_type=movement_type,
                status=MovementStatus.DRAFT,
                adjustment_direction=(
                    coerce_direction(header.adjustment_direction)
                    if movement_type is MovementType.ADJUSTMENT
                    else None
                ),
                origin_warehouse_id=header.origin_warehouse_id,
                origin_location_id=header.origin_location_id,
                destination_warehouse_id=header.destination_warehouse_id,
                destination_location_id=header.destination_location_id,
                reference=header.reference,
                reason=header.reason,
                created_by_id=created_by,
                created_at=now,
                updated_at=now,
            )
            for line_no, line in enumerate(lines, start=1):
                quantity = round_quantity(line.quantity)
                unit_cost = None if line.unit_cost is None else round_cost(line.unit_cost)
                movement.lines.append(MovementLine(
                    line_no=line_no,
                    item_id=line.item_id,
                    quantity=quantity,
                    unit_cost=unit_cost,
                    total_cost=line_total_cost(quantity, unit_cost),
                    notes=line.notes,
                    created_by_id=created_by,
                    created_at=now,
                    updated_at=now,
                ))
            self.session.add(movement)
            self.session.flush()

            self._audit(movement, AuditAction.CREATE, None, created_by)

        logger.info(
            "movement_created",
            extra={
                "movement_id": str(movement.id),
                "movement_type": movement_type.value,
                "line_count": len(movement.lines),
                "created_by": str(created_by),
            },
        )
        return movement

    def confirm(self, movement_id: UUID, approved_by: UUID) -> Movement:
        """
        Apply a DRAFT movement to the balance store and mark it CONFIRMED.

        Raises:
            MovementNotFoundError: No such movement.
            InvalidTransitionError: The movement is not DRAFT.
            InsufficientStockError: A balance would become negative.
        """
        with LogContext.bind(movement_id=movement_id, actor_id=approved_by):
            with self.session.begin_nested():
                movement = self._load_for_update(movement_id)

                if not can_transition(movement.status, MovementStatus.CONFIRMED):
                    logger.warning(
                        "movement_confirm_rejected",
                        extra={"status": movement.status.value},
                    )
                    raise InvalidTransitionError(
                        str(movement_id),
                        movement.status.value,
                        MovementStatus.CONFIRMED.value,
                    )

                before = movement.to_snapshot()
                deltas = compute_deltas(movement.header, movement.line_inputs)
                applied = self._applier.apply(deltas)

                now = self._clock.now()
                movement.status = MovementStatus.CONFIRMED
                movement.approved_by_id = approved_by
                movement.confirmed_at = now
                movement.updated_by_id = approved_by
                movement.updated_at = now
                self.session.flush()

                self._audit(movement, AuditAction.CONFIRM, before, approved_by)

            logger.info(
                "movement_confirmed",
                extra={
                    "movement_type": movement.movement_type.value,
                    "delta_count": len(applied),
                    "net_keys": len(net_deltas(deltas)),
                },
            )
        return movement

    def cancel(
        self,
        movement_id: UUID,
        user_id: UUID,
        reason: str | None = None,
    ) -> Movement:
        """
        Withdraw a DRAFT movement.  Balances are not touched.

        Args:
            movement_id: Movement to cancel.
            user_id: Acting user.
            reason: Replaces the stored reason unless None; an empty string
                clears it.

        Raises:
            MovementNotFoundError: No such movement.
            AlreadyCanceledError: The movement is already CANCELED.
            ConfirmedImmutableError: The movement is CONFIRMED.
        """
        with LogContext.bind(movement_id=movement_id, actor_id=user_id):
            with self.session.begin_nested():
                movement = self._load_for_update(movement_id)

                if movement.status in TERMINAL_MOVEMENT_STATUSES:
                    if movement.is_canceled:
                        raise AlreadyCanceledError(str(movement_id))
                    raise ConfirmedImmutableError(str(movement_id))

                before = movement.to_snapshot()

                now = self._clock.now()
                movement.status = MovementStatus.CANCELED
                movement.canceled_at = now
                if reason is not None:
                    movement.reason = reason
                movement.updated_by_id = user_id
                movement.updated_at = now
                self.session.flush()

                self._audit(movement, AuditAction.CANCEL, before, user_id)

            logger.info(
                "movement_canceled",
                extra={"reason": movement.reason},
            )
        return movement
