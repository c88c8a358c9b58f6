"""
Pure domain layer for the inventory kernel.

Everything here is deterministic and free of I/O: value types, the movement
state machine, the validator, the delta computer and alert classification.
Nothing in this package imports from db/, models/, services/ or selectors/.
"""
