"""Orchestration layer - workflow state machine and auto-progression timers."""

from voiceowl.orchestration.scheduler import AutoProgressionScheduler
from voiceowl.orchestration.state_machine import (
    SYSTEM_REVIEWER,
    WorkflowStateMachine,
    can_transition,
    next_auto_status,
    valid_transitions,
)

__all__ = [
    "AutoProgressionScheduler",
    "WorkflowStateMachine",
    "SYSTEM_REVIEWER",
    "can_transition",
    "next_auto_status",
    "valid_transitions",
]
