"""Safety guardrail adapters.

The rule set itself lives in an external policy service; this module only
consumes its contract and applies the fail-open/fail-closed policy.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import httpx

from core.services.substitution.models import GuardrailDecision, ScaledCandidate, UserContext


GUARDRAIL_UNAVAILABLE_WARNING = "Guardrail check unavailable"

STATUS_PASSED = "passed"
STATUS_UNVERIFIED = "unverified"
STATUS_BLOCKED = "blocked"


class GuardrailError(Exception):
    """Raised by a guardrail manager when the policy service cannot answer."""


class GuardrailManager(ABC):
    """Contract of the external safety policy engine."""

    @abstractmethod
    async def validate_workout(
        self,
        workout: Mapping[str, Any],
        user_profile: Mapping[str, Any],
        recent_sessions: Sequence[Mapping[str, Any]],
        readiness_data: Mapping[str, Any],
    ) -> GuardrailDecision:
        """Decide whether a workout is safe for this athlete right now."""


def decision_from_payload(payload: Mapping[str, Any]) -> GuardrailDecision:
    """Parse the policy service's camelCase response body."""
    if "isAllowed" not in payload:
        raise GuardrailError("Guardrail response missing isAllowed")
    return GuardrailDecision(
        is_allowed=bool(payload["isAllowed"]),
        warnings=tuple(str(w) for w in payload.get("warnings") or ()),
        auto_adjustments=tuple(payload.get("autoAdjustments") or ()),
        blocks=tuple(str(b) for b in payload.get("blocks") or ()),
    )


class HttpGuardrailManager(GuardrailManager):
    """Guardrail manager backed by a remote policy service over HTTP."""

    def __init__(self, url: str, timeout: float = 5.0, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def validate_workout(self, workout, user_profile, recent_sessions, readiness_data) -> GuardrailDecision:
        body = {
            "workout": dict(workout),
            "userProfile": dict(user_profile),
            "recentSessions": [dict(s) for s in recent_sessions],
            "readinessData": dict(readiness_data),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=body)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GuardrailError(f"Guardrail service request failed: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise GuardrailError("Guardrail response is not an object")
        return decision_from_payload(payload)


@dataclass(frozen=True)
class GuardrailCheck:
    valid: bool
    status: str
    warnings: tuple[str, ...] = ()
    blocks: tuple[str, ...] = ()


class GuardrailValidator:
    """Runs one candidate through the guardrail manager.

    With no manager, or when the manager raises, the outcome depends on
    ``fail_open_on_guardrail_error``: open keeps the candidate with a warning,
    closed drops it.
    """

    def __init__(
        self,
        manager: GuardrailManager | None,
        *,
        fail_open_on_guardrail_error: bool = True,
        logger: logging.Logger | None = None,
    ):
        self.manager = manager
        self.fail_open_on_guardrail_error = fail_open_on_guardrail_error
        self.logger = logger or logging.getLogger(__name__)

    def _unavailable(self, candidate: ScaledCandidate, reason: str) -> GuardrailCheck:
        self.logger.warning(
            "guardrail_unavailable",
            extra={
                "template_id": candidate.template_id,
                "reason": reason,
                "fail_open": self.fail_open_on_guardrail_error,
            },
        )
        if self.fail_open_on_guardrail_error:
            return GuardrailCheck(valid=True, status=STATUS_UNVERIFIED, warnings=(GUARDRAIL_UNAVAILABLE_WARNING,))
        return GuardrailCheck(valid=False, status=STATUS_BLOCKED, blocks=(GUARDRAIL_UNAVAILABLE_WARNING,))

    async def validate(self, candidate: ScaledCandidate, user_context: UserContext) -> GuardrailCheck:
        if self.manager is None:
            return self._unavailable(candidate, "no guardrail manager configured")
        try:
            decision = await self.manager.validate_workout(
                candidate.to_dict(),
                user_context.user_profile,
                user_context.recent_sessions,
                user_context.readiness_data,
            )
        except Exception as exc:
            return self._unavailable(candidate, str(exc) or type(exc).__name__)

        if not decision.is_allowed:
            return GuardrailCheck(valid=False, status=STATUS_BLOCKED, warnings=decision.warnings, blocks=decision.blocks)
        return GuardrailCheck(valid=True, status=STATUS_PASSED, warnings=decision.warnings)
