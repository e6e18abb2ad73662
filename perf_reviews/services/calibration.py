"""
Calibration Engine

Facilitated sessions in which managers cross-check evaluations. Every score
change is an append-only CalibrationAdjustment; locking a session is terminal.
"""
from collections import defaultdict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from perf_reviews.core.exceptions import (
    CalibrationAlreadyLocked,
    CalibrationDeadlinePassed,
    CalibrationSessionNotFound,
    ManagerEvaluationNotFound,
    UserNotFound,
    ValidationError,
)
from perf_reviews.core.transitions import ensure_transition
from perf_reviews.models.calibration import (
    CalibrationSession,
    CalibrationAdjustment,
    CalibrationStatus,
    SESSION_TRANSITIONS,
)
from perf_reviews.models.final_score import BonusTier
from perf_reviews.models.manager_evaluation import EvaluationStatus, EVALUATION_TRANSITIONS
from perf_reviews.models.review_cycle import DeadlinePhase
from perf_reviews.repositories.calibration import CalibrationSessionRepository, CalibrationAdjustmentLog
from perf_reviews.repositories.reviews import ManagerEvaluationRepository
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.calibration import (
    CalibrationAdjustmentResponse,
    CalibrationDashboard,
    CalibrationSessionDetail,
    CalibrationSessionResponse,
    TierDistribution,
)
from perf_reviews.services.authorization import Action, AuthTarget
from perf_reviews.services.base import BaseService
from perf_reviews.services.final_scores import FinalScoreService
from perf_reviews.services.scoring import calculate, coerce_scores
from perf_reviews.services.validation import ensure_justification

_ONE_PLACE = Decimal("0.1")


class CalibrationService(BaseService):
    def __init__(self, db, clock=None):
        super().__init__(db, clock)
        self.sessions = CalibrationSessionRepository(db)
        self.adjustments = CalibrationAdjustmentLog(db)
        self.evaluations = ManagerEvaluationRepository(db)

    # --- Session lifecycle --------------------------------------------------

    def create_session(
        self,
        cycle_id: str,
        name: str,
        facilitator_id: str,
        participant_ids: List[str],
        scheduled_at: datetime,
        actor: Actor,
        department: Optional[str] = None,
    ) -> CalibrationSession:
        self.policy.require(actor, Action.CREATE_CALIBRATION_SESSION)
        if not (name or "").strip():
            raise ValidationError("Session name is required", details={"field": "name"})
        participants = list(dict.fromkeys(participant_ids or []))

        with self.unit_of_work():
            self.get_open_cycle(cycle_id)
            known = {u.id for u in self.users.find_by_ids([facilitator_id, *participants])}
            unknown = [i for i in [facilitator_id, *participants] if i not in known]
            if unknown:
                raise UserNotFound(details={"user_ids": unknown})

            session = CalibrationSession(
                cycle_id=cycle_id,
                name=name.strip(),
                department=department,
                facilitator_id=facilitator_id,
                participant_ids=participants,
                status=CalibrationStatus.SCHEDULED,
                scheduled_at=scheduled_at,
            )
            self.sessions.save(session)
            self.audit.log_action(
                action="calibration_session_created",
                entity_type="calibration_session",
                entity_id=session.id,
                actor_id=actor.user_id,
                details={"cycle_id": cycle_id, "department": department, "participants": participants},
            )
        self._logger.info(f"Calibration session {session.id} scheduled for cycle {cycle_id}")
        return session

    def start_session(self, session_id: str, actor: Actor) -> CalibrationSession:
        with self.unit_of_work():
            session = self._get_unlocked_session(session_id, Action.CALIBRATE, actor)
            session.status = ensure_transition(
                SESSION_TRANSITIONS, session.status, CalibrationStatus.IN_PROGRESS, entity="calibration session"
            )
            self.sessions.save(session)
        self._logger.info(f"Calibration session {session_id} started")
        return session

    def record_note(self, session_id: str, notes: str, actor: Actor) -> CalibrationSession:
        with self.unit_of_work():
            session = self._get_unlocked_session(session_id, Action.CALIBRATE, actor)
            if not (notes or "").strip():
                raise ValidationError("Notes must not be empty", details={"field": "notes"})
            self._start_if_scheduled(session)
            session.notes = notes
            self.sessions.save(session)
        self._logger.info(f"Notes recorded on calibration session {session_id}")
        return session

    def apply_adjustment(
        self,
        session_id: str,
        manager_evaluation_id: str,
        adjusted_scores,
        justification: str,
        actor: Actor,
    ) -> CalibrationAdjustment:
        with self.unit_of_work():
            session = self._get_unlocked_session(session_id, Action.CALIBRATE, actor)
            cycle = self.get_cycle(session.cycle_id)
            self.ensure_before_deadline(cycle, DeadlinePhase.CALIBRATION, CalibrationDeadlinePassed)

            evaluation = self.evaluations.find_by_id(manager_evaluation_id, for_update=True)
            if not evaluation:
                raise ManagerEvaluationNotFound(details={"manager_evaluation_id": manager_evaluation_id})
            if evaluation.cycle_id != session.cycle_id:
                raise ValidationError(
                    "Evaluation does not belong to the session's cycle",
                    details={"manager_evaluation_id": evaluation.id},
                )
            if session.department:
                employee = self.users.find_by_id(evaluation.employee_id)
                if employee is None or employee.department != session.department:
                    raise ValidationError(
                        f"Employee is not in the {session.department} department",
                        details={"employee_id": evaluation.employee_id},
                    )
            justification = ensure_justification(justification)
            scores = coerce_scores(adjusted_scores)

            evaluation.status = ensure_transition(
                EVALUATION_TRANSITIONS, evaluation.status, EvaluationStatus.CALIBRATED, entity="manager evaluation"
            )
            self._start_if_scheduled(session)
            now = self.now()
            previous = evaluation.scores_snapshot()
            evaluation.apply_scores(scores)
            evaluation.calibrated_at = now
            self.evaluations.save(evaluation)

            adjustment = self.adjustments.append(CalibrationAdjustment(
                session_id=session.id,
                manager_evaluation_id=evaluation.id,
                previous_scores=previous,
                adjusted_scores=scores.model_dump(),
                justification=justification,
                adjusted_by=actor.user_id,
                created_at=now,
            ))
            self.sessions.save(session)
            FinalScoreService(self.db, self.clock).refresh_for_evaluation(evaluation)
        self._logger.info(
            f"Calibration adjustment {adjustment.id} on evaluation {manager_evaluation_id} "
            f"in session {session_id} by {actor.user_id}"
        )
        return adjustment

    def lock(self, session_id: str, actor: Actor) -> CalibrationSession:
        """Terminal: lockedAt/lockedBy are written exactly once."""
        with self.unit_of_work():
            session = self._get_unlocked_session(session_id, Action.LOCK_CALIBRATION, actor)
            now = self.now()
            session.status = ensure_transition(
                SESSION_TRANSITIONS, session.status, CalibrationStatus.COMPLETED, entity="calibration session"
            )
            session.completed_at = now
            session.locked_at = now
            session.locked_by = actor.user_id
            self.sessions.save(session)
            self.audit.log_action(
                action="calibration_session_locked",
                entity_type="calibration_session",
                entity_id=session.id,
                actor_id=actor.user_id,
                after_state={"status": session.status, "locked_at": now},
            )
        self._logger.info(f"Calibration session {session_id} locked by {actor.user_id}")
        return session

    # --- Reads --------------------------------------------------------------

    def get_session(self, session_id: str, actor: Actor) -> CalibrationSessionDetail:
        session = self._get_session(session_id)
        self.policy.require(actor, Action.VIEW_CALIBRATION, self._target(session))
        return CalibrationSessionDetail(
            session=CalibrationSessionResponse.model_validate(session),
            adjustments=[
                CalibrationAdjustmentResponse.model_validate(a)
                for a in self.adjustments.find_by_session(session.id)
            ],
        )

    def list_adjustments(self, session_id: str, actor: Actor) -> List[CalibrationAdjustment]:
        session = self._get_session(session_id)
        self.policy.require(actor, Action.VIEW_CALIBRATION, self._target(session))
        return self.adjustments.find_by_session(session.id)

    def list_sessions(self, cycle_id: str, actor: Actor) -> List[CalibrationSession]:
        self.get_cycle(cycle_id)
        return [
            s for s in self.sessions.find_by_cycle(cycle_id)
            if self.policy.evaluate(actor, Action.VIEW_CALIBRATION, self._target(s)).allowed
        ]

    def dashboard(self, cycle_id: str, actor: Actor, department: Optional[str] = None) -> CalibrationDashboard:
        """Bonus-tier distribution of submitted evaluations, grouped by department."""
        self.policy.require(actor, Action.VIEW_CALIBRATION)
        self.get_cycle(cycle_id)
        evaluations = self.evaluations.find_by_cycle(cycle_id)
        departments = {u.id: u.department for u in self.users.find_by_ids({e.employee_id for e in evaluations})}
        if department is not None:
            evaluations = [e for e in evaluations if departments.get(e.employee_id) == department]

        submitted = [e for e in evaluations if e.is_submitted]
        groups = defaultdict(list)
        for evaluation in submitted:
            groups[departments.get(evaluation.employee_id)].append(calculate(evaluation.scores))

        distribution = []
        for dept in sorted(groups, key=lambda d: (d is None, d or "")):
            results = groups[dept]
            tiers = [r.bonus_tier for r in results]
            average = sum(r.percentage_score for r in results) / Decimal(len(results))
            distribution.append(TierDistribution(
                department=dept,
                total=len(results),
                exceeds=tiers.count(BonusTier.EXCEEDS),
                meets=tiers.count(BonusTier.MEETS),
                below=tiers.count(BonusTier.BELOW),
                average_percentage=average.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP),
            ))
        return CalibrationDashboard(
            cycle_id=cycle_id,
            submitted_evaluations=len(submitted),
            calibrated_evaluations=sum(1 for e in submitted if e.is_calibrated),
            pending_evaluations=len(evaluations) - len(submitted),
            departments=distribution,
        )

    # --- Helpers ------------------------------------------------------------

    def _get_session(self, session_id: str, for_update: bool = False) -> CalibrationSession:
        session = self.sessions.find_by_id(session_id, for_update=for_update)
        if not session:
            raise CalibrationSessionNotFound(details={"session_id": session_id})
        return session

    def _get_unlocked_session(self, session_id: str, action: Action, actor: Actor) -> CalibrationSession:
        session = self._get_session(session_id, for_update=True)
        self.policy.require(actor, action, self._target(session))
        if session.is_locked:
            raise CalibrationAlreadyLocked(details={"session_id": session.id, "locked_by": session.locked_by})
        self.get_open_cycle(session.cycle_id)
        return session

    def _start_if_scheduled(self, session: CalibrationSession) -> None:
        if session.status == CalibrationStatus.SCHEDULED:
            session.status = ensure_transition(
                SESSION_TRANSITIONS, session.status, CalibrationStatus.IN_PROGRESS, entity="calibration session"
            )

    @staticmethod
    def _target(session: CalibrationSession) -> AuthTarget:
        return AuthTarget(facilitator_id=session.facilitator_id, participant_ids=tuple(session.participant_ids or ()))
