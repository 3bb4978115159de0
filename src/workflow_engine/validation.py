"""Structural validation of workflow definitions.

Validation is pure and runs once, before a definition is stored. Disabled
states and actions are checked like any other: enablement only matters at
execution time.
"""

from __future__ import annotations

from collections import Counter

from workflow_engine.errors import InvalidDefinitionError
from workflow_engine.models import State, WorkflowDefinitionDraft


def _duplicates(ids: list[str]) -> list[str]:
    counts = Counter(ids)
    seen: set[str] = set()
    out: list[str] = []
    for item in ids:
        if counts[item] > 1 and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def find_violations(definition: WorkflowDefinitionDraft) -> list[str]:
    """Return every structural violation, in precedence order.

    The order is: duplicate state IDs, duplicate action IDs, initial-state
    count, per-action references, then transitions out of final states.
    An empty list means the definition is well-formed.
    """

    violations: list[str] = []

    for state_id in _duplicates([s.id for s in definition.states]):
        violations.append(f"Duplicate state ID '{state_id}'.")

    for action_id in _duplicates([a.id for a in definition.actions]):
        violations.append(f"Duplicate action ID '{action_id}'.")

    initial = [s for s in definition.states if s.is_initial]
    if not initial:
        violations.append(
            "No initial state found. Exactly one state must be marked as initial."
        )
    elif len(initial) > 1:
        names = ", ".join(f"'{s.id}'" for s in initial)
        violations.append(
            f"Multiple initial states found ({names}). "
            "Exactly one state must be marked as initial."
        )

    # First occurrence wins when IDs collide; duplicates were reported above.
    states: dict[str, State] = {}
    for state in definition.states:
        states.setdefault(state.id, state)

    for action in definition.actions:
        if not action.from_states:
            violations.append(f"Action '{action.id}' has no source states.")
        if action.to_state not in states:
            violations.append(
                f"Action '{action.id}' references unknown target state '{action.to_state}'."
            )
        for source in action.from_states:
            if source not in states:
                violations.append(
                    f"Action '{action.id}' references unknown source state '{source}'."
                )

    for action in definition.actions:
        for source in action.from_states:
            state = states.get(source)
            if state is not None and state.is_final:
                violations.append(
                    f"Action '{action.id}' cannot originate from final state '{source}'."
                )

    return violations


def validate_definition(definition: WorkflowDefinitionDraft) -> None:
    """Raise :class:`InvalidDefinitionError` if the definition is not well-formed.

    The error message is the first violation found; all of them are available
    on ``error.violations``.
    """

    violations = find_violations(definition)
    if violations:
        raise InvalidDefinitionError(violations[0], violations=violations)
