"""
Declarative authorization policy.

Every role and ownership check in the API goes through ``authorize``.
Rules are plain predicates registered per ``(resource, action)`` pair and
evaluated against the acting user and, where there is one, the target row.
A pair with no registered rule is denied.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from fastapi import HTTPException, status

from medibook.models.appointment import Appointment
from medibook.models.doctor import Doctor
from medibook.models.symptom_analysis import SymptomAnalysis
from medibook.models.user import User

logger = logging.getLogger(__name__)


class Resource(str, Enum):
    USER = "user"
    DOCTOR_PROFILE = "doctor_profile"
    APPOINTMENT = "appointment"
    HEALTH_RECORD = "health_record"
    SYMPTOM_ANALYSIS = "symptom_analysis"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    CANCEL = "cancel"
    COMPLETE = "complete"
    CHANGE_ROLE = "change_role"


Rule = Callable[[User, Any], bool]

_RULES: dict[tuple[Resource, Action], Rule] = {}


def rule(resource: Resource, *actions: Action) -> Callable[[Rule], Rule]:
    """Register ``fn`` as the rule for each of ``actions`` on ``resource``."""
    def decorator(fn: Rule) -> Rule:
        for action in actions:
            _RULES[(resource, action)] = fn
        return fn
    return decorator


@dataclass(frozen=True)
class PatientContext:
    """Target for health-record rules: whose records, and whether the actor treats them."""

    patient_id: str
    under_care: bool = False


def _doctor_profile_id(actor: User) -> Optional[int]:
    profile = actor.doctor_profile if actor.is_doctor else None
    return profile.id if profile else None


# ============================================================================
# Rules
# ============================================================================

@rule(Resource.USER, Action.CHANGE_ROLE)
def _is_self(actor: User, target: User) -> bool:
    return target is not None and actor.id == target.id


@rule(Resource.DOCTOR_PROFILE, Action.CREATE)
def _is_doctor(actor: User, target: Any) -> bool:
    return actor.is_doctor


@rule(Resource.DOCTOR_PROFILE, Action.UPDATE)
def _owns_profile(actor: User, target: Doctor) -> bool:
    return target.user_id == actor.id


@rule(Resource.APPOINTMENT, Action.READ, Action.UPDATE, Action.CANCEL)
def _is_participant(actor: User, target: Appointment) -> bool:
    if target.patient_id == actor.id:
        return True
    profile_id = _doctor_profile_id(actor)
    return profile_id is not None and target.doctor_id == profile_id


@rule(Resource.APPOINTMENT, Action.COMPLETE)
def _is_attending_doctor(actor: User, target: Appointment) -> bool:
    profile_id = _doctor_profile_id(actor)
    return profile_id is not None and target.doctor_id == profile_id


@rule(Resource.HEALTH_RECORD, Action.CREATE)
def _may_write_for_patient(actor: User, target: PatientContext) -> bool:
    return actor.is_doctor or target.patient_id == actor.id


@rule(Resource.HEALTH_RECORD, Action.LIST, Action.READ, Action.UPDATE)
def _may_access_records(actor: User, target: PatientContext) -> bool:
    if target.patient_id == actor.id:
        return True
    return actor.is_doctor and target.under_care


@rule(Resource.SYMPTOM_ANALYSIS, Action.READ)
def _owns_analysis(actor: User, target: SymptomAnalysis) -> bool:
    return target.patient_id == actor.id


# ============================================================================
# Evaluation
# ============================================================================

def is_allowed(actor: User, resource: Resource, action: Action, target: Any = None) -> bool:
    """Evaluate the rule for ``(resource, action)``; unknown pairs are denied."""
    check = _RULES.get((resource, action))
    if check is None:
        return False
    return bool(check(actor, target))


def authorize(
    actor: User,
    resource: Resource,
    action: Action,
    target: Any = None,
    detail: str = "Forbidden",
) -> None:
    """Raise 403 unless ``actor`` may perform ``action`` on ``resource``."""
    if not is_allowed(actor, resource, action, target):
        logger.info(
            "Denied %s on %s for user=%s role=%s",
            action.value, resource.value, actor.id, actor.role,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
