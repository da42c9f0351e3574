from __future__ import annotations

import logging
from typing import Any, Dict, List

from assetdb.errors import InvalidStatusTransition

from .registry import WORKFLOWS

logger = logging.getLogger(__name__)


class TransitionError(InvalidStatusTransition):
    def __init__(self, code: str, detail: List[Dict[str, str]]) -> None:
        reasons = "; ".join(item["reason"] for item in detail) or code
        super().__init__(reasons, code=code)
        self.detail = detail


def can_transition(workflow_name: str, from_state: str, to_state: str) -> bool:
    transitions = WORKFLOWS.get(workflow_name, {}).get("transitions", {})
    return to_state in transitions.get(from_state, {})


def apply_transition(
    *,
    workflow_name: str,
    entity_id: str,
    from_state: str,
    to_state: str,
    before_obj: Any,
    after_obj: Any,
) -> None:
    """
    Validate a status change against the registered workflow and its guards.

    Raises `TransitionError` without touching the entity; callers assign the
    new status only after this returns.
    """
    workflow = WORKFLOWS.get(workflow_name)
    if not workflow:
        raise TransitionError(
            code="invalid_transition",
            detail=[{"field": "type", "reason": f"No workflow registered for {workflow_name}"}],
        )

    transitions = workflow.get("transitions", {})
    allowed = transitions.get(from_state, {})
    guards = allowed.get(to_state)

    if guards is None:
        raise TransitionError(
            code="invalid_transition",
            detail=[{"field": "status", "reason": f"Cannot transition {entity_id} from {from_state} to {to_state}"}],
        )

    failures: List[Dict[str, str]] = []
    for guard in guards:
        failures.extend(
            guard(
                before_obj=before_obj,
                after_obj=after_obj,
                from_state=from_state,
                to_state=to_state,
            )
        )

    if failures:
        raise TransitionError(code="missing_requirements", detail=failures)

    logger.debug(
        "Status transition accepted",
        extra={"workflow": workflow_name, "entity_id": entity_id, "from_state": from_state, "to_state": to_state},
    )
