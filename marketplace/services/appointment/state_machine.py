# ============================================================================
# marketplace/services/appointment/state_machine.py
# Who may do what to an appointment, and what it becomes afterwards
# ============================================================================
"""
Appointment negotiation rules.

Each AppointmentAction has exactly one TransitionRule: the party allowed to
perform it, the statuses it may start from, the status it produces and the
history ``action_type`` it records. ``plan_transition`` checks the actor
first and the current status second, so an outsider never learns the status
from the error they get back.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from marketplace.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidTransitionError,
    ValidationError,
)
from marketplace.models.appointment import Appointment, AppointmentAction, AppointmentStatus
from marketplace.models.user import User, UserRole

NO_REASON = "Not provided"

_OPEN_STATUSES = frozenset({
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL,
    AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
})


@dataclass(frozen=True)
class TransitionRule:
    actor: UserRole
    from_statuses: FrozenSet[AppointmentStatus]
    to_status: AppointmentStatus
    action_type: str
    carries_reason: bool = False


@dataclass
class TransitionPlan:
    """Everything the store needs to apply one validated action"""
    action: AppointmentAction
    actor_role: UserRole
    new_status: AppointmentStatus
    action_type: str
    details: Dict[str, Any] = field(default_factory=dict)
    changes: Dict[str, Any] = field(default_factory=dict)


TRANSITIONS: Dict[AppointmentAction, TransitionRule] = {
    AppointmentAction.CONFIRM: TransitionRule(
        actor=UserRole.PROFESSIONAL,
        from_statuses=frozenset({AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL}),
        to_status=AppointmentStatus.CONFIRMED,
        action_type="confirmed_request",
    ),
    AppointmentAction.REJECT: TransitionRule(
        actor=UserRole.PROFESSIONAL,
        from_statuses=frozenset({AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL}),
        to_status=AppointmentStatus.REJECTED_BY_PROFESSIONAL,
        action_type="rejected_request",
        carries_reason=True,
    ),
    AppointmentAction.COUNTER: TransitionRule(
        actor=UserRole.PROFESSIONAL,
        from_statuses=frozenset({AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL}),
        to_status=AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
        action_type="counter_offered",
    ),
    AppointmentAction.ACCEPT_COUNTER: TransitionRule(
        actor=UserRole.CUSTOMER,
        from_statuses=frozenset({AppointmentStatus.COUNTERED_BY_PROFESSIONAL}),
        to_status=AppointmentStatus.CONFIRMED,
        action_type="accepted_counter_offer",
    ),
    AppointmentAction.REJECT_COUNTER: TransitionRule(
        actor=UserRole.CUSTOMER,
        from_statuses=frozenset({AppointmentStatus.COUNTERED_BY_PROFESSIONAL}),
        to_status=AppointmentStatus.REJECTED_BY_CUSTOMER,
        action_type="rejected_counter_offer",
        carries_reason=True,
    ),
    AppointmentAction.CANCEL_BY_CUSTOMER: TransitionRule(
        actor=UserRole.CUSTOMER,
        from_statuses=_OPEN_STATUSES,
        to_status=AppointmentStatus.CANCELLED_BY_CUSTOMER,
        action_type="cancelled_appointment",
        carries_reason=True,
    ),
    AppointmentAction.CANCEL_BY_PROFESSIONAL: TransitionRule(
        actor=UserRole.PROFESSIONAL,
        from_statuses=_OPEN_STATUSES,
        to_status=AppointmentStatus.CANCELLED_BY_PROFESSIONAL,
        action_type="cancelled_appointment",
        carries_reason=True,
    ),
    AppointmentAction.COMPLETE: TransitionRule(
        actor=UserRole.PROFESSIONAL,
        from_statuses=frozenset({AppointmentStatus.CONFIRMED}),
        to_status=AppointmentStatus.COMPLETED,
        action_type="completed_appointment",
    ),
}

_missing = set(AppointmentAction) - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"No transition rule for: {sorted(a.value for a in _missing)}")


def is_party(actor: User, appointment: Appointment, role: UserRole) -> bool:
    """Actor holds `role` and is that party on this appointment"""
    if actor.role != role:
        return False
    party_id = appointment.professional_id if role == UserRole.PROFESSIONAL else appointment.customer_id
    return party_id == actor.id


def authorize(actor: Optional[User], appointment: Appointment, action: AppointmentAction) -> TransitionRule:
    if actor is None:
        raise AuthenticationError("Authentication required")

    rule = TRANSITIONS[action]
    if not is_party(actor, appointment, rule.actor):
        who = "assigned professional" if rule.actor == UserRole.PROFESSIONAL else "customer for this appointment"
        raise AuthorizationError(f"Unauthorized: Only the {who} can perform '{action.value}'.")
    return rule


def plan_transition(
        actor: Optional[User],
        appointment: Appointment,
        action: AppointmentAction,
        final_price: Optional[float] = None,
        reason: Optional[str] = None
) -> TransitionPlan:
    """
    Validate `action` by `actor` against the appointment as read and describe
    the resulting change. Raises AuthenticationError, AuthorizationError,
    InvalidTransitionError or ValidationError, in that order of checking.
    """
    rule = authorize(actor, appointment, action)

    if appointment.status not in rule.from_statuses:
        raise InvalidTransitionError(action.value, appointment.status.value)

    plan = TransitionPlan(
        action=action,
        actor_role=rule.actor,
        new_status=rule.to_status,
        action_type=rule.action_type,
    )

    if action == AppointmentAction.COUNTER:
        _validate_counter_price(final_price, appointment.quoted_price)
        plan.changes["final_price"] = float(final_price)
        plan.details = {"oldPrice": appointment.quoted_price, "newPrice": float(final_price)}
    elif action in (AppointmentAction.ACCEPT_COUNTER, AppointmentAction.REJECT_COUNTER):
        plan.details = {"finalPrice": appointment.final_price}

    if rule.carries_reason:
        plan.details["reason"] = (reason or "").strip() or NO_REASON

    return plan


def _validate_counter_price(final_price, quoted_price: float) -> None:
    if isinstance(final_price, bool) or not isinstance(final_price, (int, float)) or not math.isfinite(final_price) or final_price < 0:
        raise ValidationError("Valid new final price is required for counter offer.", field="finalPrice")
    if float(final_price) == float(quoted_price):
        raise ValidationError(
            "Counter offer price cannot be the same as the original quoted price.",
            field="finalPrice"
        )
