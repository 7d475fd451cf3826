"""
Application lifecycle.

    Draft(0) --submit--> Pending(1) --approve--> InReview(2) --approve--> ...
    Pending/InReview --approve at last node--> Approved(3)
    Pending/InReview --reject--> Rejected(4)
    Pending(1) --withdraw--> Withdrawn(5)

Approved, Rejected and Withdrawn are terminal.
"""
from enum import Enum, IntEnum
from typing import Dict, Tuple

from approval_system.core.exceptions import InvalidTransitionError


class ApplicationStatus(IntEnum):
    DRAFT = 0
    PENDING = 1
    IN_REVIEW = 2
    APPROVED = 3
    REJECTED = 4
    WITHDRAWN = 5

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


class TaskStatus(IntEnum):
    TODO = 0
    DONE = 1


class ApprovalAction(IntEnum):
    AGREE = 1
    REJECT = 2

    @property
    def label(self) -> str:
        return "同意" if self is ApprovalAction.AGREE else "拒绝"


class LifecycleEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"              # agreed, another node follows
    APPROVE_FINAL = "approve_final"  # agreed at the last node
    REJECT = "reject"
    WITHDRAW = "withdraw"


STATUS_LABELS: Dict[ApplicationStatus, str] = {
    ApplicationStatus.DRAFT: "草稿",
    ApplicationStatus.PENDING: "待审批",
    ApplicationStatus.IN_REVIEW: "审批中",
    ApplicationStatus.APPROVED: "已通过",
    ApplicationStatus.REJECTED: "已拒绝",
    ApplicationStatus.WITHDRAWN: "已撤回",
}

UNFINISHED = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.PENDING, ApplicationStatus.IN_REVIEW})
FINISHED = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN})
ACTIVE = frozenset({ApplicationStatus.PENDING, ApplicationStatus.IN_REVIEW})

_TRANSITIONS: Dict[Tuple[ApplicationStatus, LifecycleEvent], ApplicationStatus] = {
    (ApplicationStatus.DRAFT, LifecycleEvent.SUBMIT): ApplicationStatus.PENDING,
    (ApplicationStatus.PENDING, LifecycleEvent.APPROVE): ApplicationStatus.IN_REVIEW,
    (ApplicationStatus.IN_REVIEW, LifecycleEvent.APPROVE): ApplicationStatus.IN_REVIEW,
    (ApplicationStatus.PENDING, LifecycleEvent.APPROVE_FINAL): ApplicationStatus.APPROVED,
    (ApplicationStatus.IN_REVIEW, LifecycleEvent.APPROVE_FINAL): ApplicationStatus.APPROVED,
    (ApplicationStatus.PENDING, LifecycleEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.IN_REVIEW, LifecycleEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.PENDING, LifecycleEvent.WITHDRAW): ApplicationStatus.WITHDRAWN,
}

_EVENT_MESSAGES = {
    LifecycleEvent.SUBMIT: "Only draft applications can be submitted",
    LifecycleEvent.APPROVE: "Application is not awaiting approval",
    LifecycleEvent.APPROVE_FINAL: "Application is not awaiting approval",
    LifecycleEvent.REJECT: "Application is not awaiting approval",
    LifecycleEvent.WITHDRAW: "Only pending applications that have not been reviewed can be withdrawn",
}


def to_status(value) -> ApplicationStatus:
    try:
        return ApplicationStatus(int(value))
    except (TypeError, ValueError):
        raise InvalidTransitionError(f"Unknown application status: {value}")


def next_status(current, event: LifecycleEvent) -> ApplicationStatus:
    """Return the status reached from ``current`` on ``event`` or raise InvalidTransitionError."""
    current = to_status(current)
    target = _TRANSITIONS.get((current, LifecycleEvent(event)))
    if target is None:
        raise InvalidTransitionError(
            f"{_EVENT_MESSAGES[LifecycleEvent(event)]} (current status: {current.label})"
        )
    return target


def is_terminal(status) -> bool:
    return to_status(status) in FINISHED


def status_label(status) -> str:
    try:
        return ApplicationStatus(int(status)).label
    except (TypeError, ValueError):
        return "未知"
