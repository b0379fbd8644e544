"""Substitution pipeline.

Analyze -> compute target load -> find candidates -> scale -> guardrails ->
rank -> explain. Every collaborator is passed in; the engine keeps no state
between calls, so one instance can serve concurrent requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from core.errors import InsufficientDataError, NoSuitableTemplatesError, SafetyBlockedError
from core.services.substitution.analyzer import analyze_session
from core.services.substitution.candidates import DEFAULT_AVAILABLE_TIME_MIN, Candidate, find_candidates
from core.services.substitution.catalog import WorkoutCatalog
from core.services.substitution.guardrails import GuardrailManager, GuardrailValidator
from core.services.substitution.load import compute_load
from core.services.substitution.models import (
    Modality,
    PlannedSession,
    ScaledCandidate,
    SessionAnalysis,
    TargetLoad,
    UserContext,
)
from core.services.substitution.ranking import MAX_RESULTS, generate_reasoning, quality_score, rank_candidates
from core.services.substitution.scaler import scale_candidate


@dataclass(frozen=True)
class SubstitutionResult:
    analysis: SessionAnalysis
    target_load: TargetLoad
    target_modality: Modality
    substitutions: list[ScaledCandidate]


class SubstitutionEngine:
    def __init__(
        self,
        catalog: WorkoutCatalog,
        guardrail_manager: GuardrailManager | None = None,
        *,
        fail_open_on_guardrail_error: bool = True,
        max_results: int = MAX_RESULTS,
        default_available_time: float = DEFAULT_AVAILABLE_TIME_MIN,
        logger: logging.Logger | None = None,
    ):
        self.catalog = catalog
        self.logger = logger or logging.getLogger(__name__)
        self.guardrails = GuardrailValidator(
            guardrail_manager,
            fail_open_on_guardrail_error=fail_open_on_guardrail_error,
            logger=self.logger,
        )
        self.max_results = max_results
        self.default_available_time = default_available_time

    def _scale_all(
        self,
        candidates: list[Candidate],
        analysis: SessionAnalysis,
        target_load: TargetLoad,
        source: Modality,
        target: Modality,
    ) -> list[ScaledCandidate]:
        """Scale every candidate, skipping catalog templates whose structure has no computable load."""
        scaled: list[ScaledCandidate] = []
        for candidate in candidates:
            try:
                scaled.append(scale_candidate(candidate, analysis, target_load, source, target))
            except InsufficientDataError as exc:
                self.logger.warning(
                    "candidate_skipped",
                    extra={"template_id": candidate.template.template_id, "reason": str(exc)},
                )
        if not scaled:
            raise NoSuitableTemplatesError(
                f"No suitable {target.value} workouts found for {analysis.adaptation}: no template has a usable structure"
            )
        return scaled

    async def suggest_substitutions(
        self,
        planned_session: PlannedSession,
        target_modality: Modality | str,
        user_context: UserContext | None = None,
    ) -> list[ScaledCandidate]:
        """Top substitutes for ``planned_session`` in ``target_modality``, best first."""
        result = await self.plan_substitutions(planned_session, target_modality, user_context)
        return result.substitutions

    async def plan_substitutions(
        self,
        planned_session: PlannedSession,
        target_modality: Modality | str,
        user_context: UserContext | None = None,
    ) -> SubstitutionResult:
        """Run the full pipeline and return the substitutions with the analysis behind them.

        Raises:
            ValidationError: invalid target modality.
            InsufficientDataError: the planned session has no computable load.
            NoSuitableTemplatesError: no catalog template survives filtering.
            InvalidConversionError: no time factor for the modality pair.
            SafetyBlockedError: every scaled candidate was rejected by guardrails.
        """
        user_context = user_context or UserContext()
        try:
            target = Modality.parse(target_modality)
            analysis = analyze_session(planned_session)
            target_load = compute_load(analysis)

            self.logger.info(
                "substitution_request",
                extra={
                    "source": f"{planned_session.modality.value} {analysis.primary_zone}",
                    "target": target.value,
                    "target_load": target_load.total_load,
                    "method": target_load.method_used.value,
                },
            )

            candidates = await find_candidates(
                self.catalog,
                target,
                analysis.adaptation,
                user_context,
                default_available_time=self.default_available_time,
            )
            scaled = self._scale_all(candidates, analysis, target_load, planned_session.modality, target)

            passed: list[ScaledCandidate] = []
            for candidate in scaled:
                check = await self.guardrails.validate(candidate, user_context)
                if not check.valid:
                    self.logger.debug(
                        "candidate_filtered",
                        extra={"template_id": candidate.template_id, "blocks": list(check.blocks)},
                    )
                    continue
                passed.append(
                    replace(
                        candidate,
                        guardrail_status=check.status,
                        warnings=candidate.warnings + check.warnings,
                    )
                )

            if not passed:
                raise SafetyBlockedError("No substitutions pass safety guardrails")

            scored = [replace(c, quality_score=quality_score(c)) for c in passed]
            top = rank_candidates(scored, self.max_results)
            explained = [replace(c, reasoning=generate_reasoning(analysis, c)) for c in top]
        except Exception as exc:
            self.logger.error("substitution_failed", extra={"error": str(exc), "error_type": type(exc).__name__})
            raise

        return SubstitutionResult(
            analysis=analysis,
            target_load=target_load,
            target_modality=target,
            substitutions=explained,
        )
