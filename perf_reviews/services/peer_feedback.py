"""
Peer Nomination & Feedback Workflow

A nominator asks 3-5 peers for feedback; each nominee accepts or declines and,
once accepted, submits one scored feedback. Reads of received feedback are
anonymized: reviewer ids never leave this module, and free-text comments are
returned only once enough reviewers have answered.
"""
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from perf_reviews.core.config import settings
from perf_reviews.core.exceptions import (
    CannotNominateManager,
    CannotNominateSelf,
    DuplicateNomination,
    InsufficientPeerNominations,
    InvalidStateTransition,
    NominationNotFound,
    PeerFeedbackAlreadySubmitted,
    PeerFeedbackDeadlinePassed,
    UserNotFound,
    ValidationError,
)
from perf_reviews.core.transitions import ensure_transition
from perf_reviews.models.peer_feedback import (
    NominationRound,
    PeerNomination,
    PeerFeedback,
    NominationStatus,
    NOMINATION_TRANSITIONS,
)
from perf_reviews.models.review_cycle import DeadlinePhase
from perf_reviews.repositories.reviews import (
    NominationRoundRepository,
    PeerFeedbackRepository,
    PeerNominationRepository,
)
from perf_reviews.schemas.actor import Actor
from perf_reviews.schemas.peer_feedback import PeerComments, PeerFeedbackAggregate
from perf_reviews.schemas.scores import AveragedPillarScores, PILLARS
from perf_reviews.services.authorization import Action, AuthTarget
from perf_reviews.services.base import BaseService
from perf_reviews.services.validation import complete_scores

_TWO_PLACES = Decimal("0.01")


class PeerFeedbackService(BaseService):
    def __init__(self, db, clock=None):
        super().__init__(db, clock)
        self.nominations = PeerNominationRepository(db)
        self.rounds = NominationRoundRepository(db)
        self.feedback = PeerFeedbackRepository(db)

    # --- Nominations --------------------------------------------------------

    def nominate(self, cycle_id: str, nominator_id: str, nominee_ids: List[str], actor: Actor) -> List[PeerNomination]:
        """Create one PENDING nomination per id, or none at all."""
        self.policy.require(actor, Action.NOMINATE_PEERS, AuthTarget(subject_id=nominator_id))
        low = settings.review.min_peer_nominations
        high = settings.review.max_peer_nominations

        with self.unit_of_work():
            cycle = self.get_open_cycle(cycle_id)
            self.ensure_before_deadline(cycle, DeadlinePhase.PEER_FEEDBACK, PeerFeedbackDeadlinePassed)

            ids = list(nominee_ids or [])
            if not low <= len(ids) <= high:
                raise InsufficientPeerNominations(
                    f"Must nominate between {low} and {high} peers",
                    details={"count": len(ids)},
                )
            repeated = sorted(i for i, n in Counter(ids).items() if n > 1)
            if repeated:
                raise ValidationError("Nominee ids must be distinct", details={"repeated": repeated})

            nominator = self.users.find_by_id(nominator_id)
            if not nominator:
                raise UserNotFound(details={"user_id": nominator_id})
            if nominator_id in ids:
                raise CannotNominateSelf()
            if nominator.manager_id and nominator.manager_id in ids:
                raise CannotNominateManager(details={"manager_id": nominator.manager_id})

            found = {u.id for u in self.users.find_by_ids(ids)}
            unknown = [i for i in ids if i not in found]
            if unknown:
                raise UserNotFound("Nominated user not found", details={"user_ids": unknown})

            # Taken before reading existing nominations; a concurrent round fails on save
            round_ = self.rounds.find_for_nominator(nominator_id, cycle_id, for_update=True)
            if round_ is None:
                round_ = NominationRound(cycle_id=cycle_id, nominator_id=nominator_id, rounds=0)

            existing = self.nominations.find_by_nominator_and_cycle(nominator_id, cycle_id, for_update=True)
            already = sorted({n.nominee_id for n in existing} & set(ids))
            if already:
                raise DuplicateNomination(details={"nominee_ids": already})
            active = sum(1 for n in existing if n.is_active)
            if active + len(ids) > high:
                raise InsufficientPeerNominations(
                    f"At most {high} active nominations are allowed per cycle",
                    details={"active": active, "requested": len(ids)},
                )

            now = self.now()
            round_.rounds += 1
            round_.last_round_at = now
            self.rounds.save(round_)
            created = [
                PeerNomination(
                    cycle_id=cycle_id,
                    nominator_id=nominator_id,
                    nominee_id=nominee_id,
                    status=NominationStatus.PENDING,
                    nominated_at=now,
                )
                for nominee_id in ids
            ]
            self.nominations.save_all(created)
        self._logger.info(f"{nominator_id} nominated {len(created)} peers in cycle {cycle_id}")
        return created

    def respond(self, nomination_id: str, accept: bool, actor: Actor) -> PeerNomination:
        with self.unit_of_work():
            nomination = self._get_nomination(nomination_id, for_update=True)
            self.policy.require(actor, Action.RESPOND_TO_NOMINATION, AuthTarget(nominee_id=nomination.nominee_id))
            cycle = self.get_open_cycle(nomination.cycle_id)
            self.ensure_before_deadline(cycle, DeadlinePhase.PEER_FEEDBACK, PeerFeedbackDeadlinePassed)

            target = NominationStatus.ACCEPTED if accept else NominationStatus.DECLINED
            nomination.status = ensure_transition(
                NOMINATION_TRANSITIONS, nomination.status, target, InvalidStateTransition, "nomination"
            )
            nomination.responded_at = self.now()
            self.nominations.save(nomination)
        self._logger.info(f"Nomination {nomination_id} {target.value.lower()}")
        return nomination

    def my_nominations(self, cycle_id: str, actor: Actor) -> List[PeerNomination]:
        self.get_cycle(cycle_id)
        return self.nominations.find_by_nominator_and_cycle(actor.user_id, cycle_id)

    def feedback_requests(self, cycle_id: str, actor: Actor) -> List[PeerNomination]:
        self.get_cycle(cycle_id)
        return self.nominations.find_by_nominee_and_cycle(actor.user_id, cycle_id)

    # --- Feedback -----------------------------------------------------------

    def submit_feedback(
        self,
        nomination_id: str,
        scores,
        actor: Actor,
        strengths: Optional[str] = None,
        growth_areas: Optional[str] = None,
        general_comments: Optional[str] = None,
    ) -> PeerFeedback:
        with self.unit_of_work():
            nomination = self._get_nomination(nomination_id, for_update=True)
            self.policy.require(actor, Action.SUBMIT_PEER_FEEDBACK, AuthTarget(nominee_id=nomination.nominee_id))
            cycle = self.get_open_cycle(nomination.cycle_id)
            self.ensure_before_deadline(cycle, DeadlinePhase.PEER_FEEDBACK, PeerFeedbackDeadlinePassed)

            if nomination.status != NominationStatus.ACCEPTED:
                raise InvalidStateTransition(
                    "Feedback can only be given on an accepted nomination",
                    details={"status": nomination.status.value},
                )
            if self.feedback.find_by_nomination(nomination_id):
                raise PeerFeedbackAlreadySubmitted(details={"nomination_id": nomination_id})

            feedback = PeerFeedback(
                cycle_id=nomination.cycle_id,
                nomination_id=nomination.id,
                reviewee_id=nomination.nominator_id,
                reviewer_id=nomination.nominee_id,
                strengths=strengths,
                growth_areas=growth_areas,
                general_comments=general_comments,
                submitted_at=self.now(),
            )
            feedback.apply_scores(complete_scores(scores))
            self.feedback.save(feedback)
        self._logger.info(f"Peer feedback submitted for nomination {nomination_id}")
        return feedback

    def aggregate(self, cycle_id: str, reviewee_id: str, actor: Actor) -> PeerFeedbackAggregate:
        self.policy.require(actor, Action.VIEW_PEER_FEEDBACK, AuthTarget(subject_id=reviewee_id))
        self.get_cycle(cycle_id)
        return self.summarize(cycle_id, reviewee_id)

    def summarize(self, cycle_id: str, reviewee_id: str) -> PeerFeedbackAggregate:
        """
        Per-dimension means over every submitted feedback for the reviewee.

        Comments are included only when the count reaches the anonymity
        threshold. The threshold applies to every caller regardless of role.
        """
        rows = self.feedback.find_by_reviewee_and_cycle(reviewee_id, cycle_id)
        count = len(rows)

        averages = None
        if count:
            averages = AveragedPillarScores(**{
                pillar: (
                    sum(Decimal(getattr(row, pillar)) for row in rows) / Decimal(count)
                ).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
                for pillar in PILLARS
            })

        withheld = count < settings.review.peer_anonymity_threshold
        comments = None
        if not withheld:
            # Sorted, never in submission order
            comments = PeerComments(
                strengths=sorted(r.strengths for r in rows if r.strengths),
                growth_areas=sorted(r.growth_areas for r in rows if r.growth_areas),
                general=sorted(r.general_comments for r in rows if r.general_comments),
            )
        return PeerFeedbackAggregate(
            cycle_id=cycle_id,
            reviewee_id=reviewee_id,
            count=count,
            averages=averages,
            comments=comments,
            comments_withheld=withheld,
        )

    def _get_nomination(self, nomination_id: str, for_update: bool = False) -> PeerNomination:
        nomination = self.nominations.find_by_id(nomination_id, for_update=for_update)
        if not nomination:
            raise NominationNotFound(details={"nomination_id": nomination_id})
        return nomination
