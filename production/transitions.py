"""
Status Transition Engine
One transition table drives both the field-triggered auto-advance and the
role-gated manual status buttons.
"""
from django.core.exceptions import ValidationError

from utils.enums import ProductionFormStatusChoices as Status, WorkflowRoleChoices as Role
from .exceptions import WorkflowPermissionError


def has_value(value):
    """True for non-empty scalars and for arrays holding at least one non-empty cell"""
    if value is None:
        return False
    if isinstance(value, (list, tuple)):
        return any(has_value(item) for item in value)
    return str(value).strip() != ''


def _general_info_complete(form):
    return has_value(form.responsible) and has_value(form.lot_number)


def _process_started(form):
    return has_value(form.start_time) or has_value(form.temperature) or has_value(form.pressure)


def liberation_recorded(form):
    return has_value(form.final_brix) or has_value(form.yield_amount) or has_value(form.c_p)


class TransitionRule:
    """
    One edge of the workflow.

    ``manual_roles`` may fire the edge through change_status. ``auto_roles`` fire
    it implicitly when they edit one of ``trigger_fields`` and ``condition`` holds
    on the updated form. ``condition`` also guards the manual path when
    ``guard_manual`` is set.
    """

    def __init__(self, name, from_status, to_status, manual_roles, auto_roles=(),
                 trigger_fields=(), condition=None, guard_manual=False, guard_message=''):
        self.name = name
        self.from_status = from_status
        self.to_status = to_status
        self.manual_roles = frozenset(manual_roles)
        self.auto_roles = frozenset(auto_roles)
        self.trigger_fields = frozenset(trigger_fields)
        self.condition = condition
        self.guard_manual = guard_manual
        self.guard_message = guard_message

    def condition_holds(self, form):
        return self.condition is None or self.condition(form)

    def __repr__(self):
        return f"TransitionRule({self.name}: {self.from_status} -> {self.to_status})"


TRANSITIONS = [
    TransitionRule(
        'start_process',
        Status.DRAFT, Status.IN_PROGRESS,
        manual_roles=[Role.PRODUCTION_MANAGER],
        auto_roles=[Role.PRODUCTION_MANAGER],
        trigger_fields=['responsible', 'lot_number'],
        condition=_general_info_complete,
    ),
    TransitionRule(
        'send_to_review',
        Status.IN_PROGRESS, Status.PENDING_REVIEW,
        manual_roles=[Role.OPERATOR, Role.PRODUCTION_MANAGER],
        auto_roles=[Role.OPERATOR],
        trigger_fields=['start_time', 'temperature', 'pressure'],
        condition=_process_started,
    ),
    TransitionRule(
        'return_to_production',
        Status.PENDING_REVIEW, Status.IN_PROGRESS,
        manual_roles=[Role.QUALITY_MANAGER],
    ),
    TransitionRule(
        'approve',
        Status.PENDING_REVIEW, Status.COMPLETED,
        manual_roles=[Role.QUALITY_MANAGER],
        auto_roles=[Role.QUALITY_MANAGER],
        trigger_fields=['final_brix', 'yield_amount', 'c_p'],
        condition=liberation_recorded,
        guard_manual=True,
        guard_message='Final brix, yield or cP must be recorded before completing the form',
    ),
]


def manual_transition(current_status, target_status, role):
    """
    Return the rule allowing ``role`` to move a form from ``current_status``
    to ``target_status``.

    Raises WorkflowPermissionError when the (role, from, to) triple is not in
    the table.
    """
    if target_status not in Status.values:
        raise ValidationError(f"Invalid status: {target_status}")

    for rule in TRANSITIONS:
        if rule.from_status == current_status and rule.to_status == target_status:
            if role in rule.manual_roles:
                return rule
            break

    raise WorkflowPermissionError(
        f"Role {role} cannot change status from {current_status} to {target_status}"
    )


def check_manual_guard(rule, form):
    if rule.guard_manual and not rule.condition_holds(form):
        raise ValidationError(rule.guard_message)


def auto_transition(form, field_name, role):
    """
    Rule that a field edit by ``role`` should fire on ``form``, or None.

    ``form`` must already carry the new value. Forms in COMPLETED never
    auto-advance since no rule starts there.
    """
    for rule in TRANSITIONS:
        if rule.from_status != form.status:
            continue
        if role not in rule.auto_roles or field_name not in rule.trigger_fields:
            continue
        if rule.condition_holds(form):
            return rule
    return None


def available_transitions(current_status, role):
    """Manual transitions the role could trigger from the current status"""
    return [
        {'name': rule.name, 'to_status': rule.to_status}
        for rule in TRANSITIONS
        if rule.from_status == current_status and role in rule.manual_roles
    ]
