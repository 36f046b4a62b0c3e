"""
Pure domain layer.

Value objects and helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable and deterministic.
"""

from asset_kernel.domain.approval import (
    ApprovalDecision,
    ApprovalDecisionRecord,
    ApprovalEvaluation,
    ApprovalPolicy,
    ApprovalRule,
)
from asset_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from asset_kernel.domain.errors import ErrorCode, LifecycleError
from asset_kernel.domain.intents import NotificationIntent
from asset_kernel.domain.values import ZERO, round_money, to_decimal
from asset_kernel.domain.workflow import Guard, Transition, TransitionResult, Workflow

__all__ = [
    "ApprovalDecision",
    "ApprovalDecisionRecord",
    "ApprovalEvaluation",
    "ApprovalPolicy",
    "ApprovalRule",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ErrorCode",
    "LifecycleError",
    "NotificationIntent",
    "ZERO",
    "round_money",
    "to_decimal",
    "Guard",
    "Transition",
    "TransitionResult",
    "Workflow",
]
