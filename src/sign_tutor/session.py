"""Quiz session state machine: idle -> active -> finished."""
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from sign_tutor.catalog import SignCatalog, filter_by_difficulty
from sign_tutor.models import MissedItem, QuizSession, Recommendation, Sign
from sign_tutor.predictor import FailurePredictor, NeutralPredictor, most_likely_to_fail
from sign_tutor.progress import record_answer
from sign_tutor.questions import MIXED, Question, generate_question
from sign_tutor.recommendations import get_recommendations
from sign_tutor.selection import STANDARD, select_session_items
from sign_tutor.sm2 import round_half_up
from sign_tutor.store import QUIZ_SESSIONS, PersistenceError, ProgressStore

IDLE = "idle"
ACTIVE = "active"
FINISHED = "finished"


class SessionError(Exception):
    """Session controller used out of order."""


@dataclass
class SessionState:
    status: str = IDLE
    mode: str = STANDARD
    categories: tuple[str, ...] = ()
    difficulty: str = "adaptive"
    question_type: str = MIXED
    items: list[Sign] = field(default_factory=list)
    index: int = 0
    correct: int = 0
    streak: int = 0
    best_streak: int = 0
    missed: list[Sign] = field(default_factory=list)
    answered: list[Sign] = field(default_factory=list)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    question: Optional[Question] = None
    current_answered: bool = False


@dataclass
class AnswerResult:
    is_correct: bool
    correct_item: Sign
    response_time_ms: float
    streak: int
    saved: bool = True


@dataclass
class ProgressSnapshot:
    status: str
    current: int
    total: int
    percentage: float
    correct: int
    streak: int
    best_streak: int


@dataclass
class SessionSummary:
    total_questions: int
    correct_answers: int
    missed: list[MissedItem]
    percentage: int
    duration_ms: int
    best_streak: int
    saved: bool = True


class SessionController:
    """Drives one quiz at a time for a store and catalog.

    State lives on the instance, so separate controllers never share progress.
    """

    def __init__(
        self,
        store: ProgressStore,
        catalog: SignCatalog,
        predictor: Optional[FailurePredictor] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
        shuffle_options: bool = True,
    ):
        self.store = store
        self.catalog = catalog
        self.predictor = predictor or NeutralPredictor()
        self.rng = rng or random.Random()
        self.clock = clock
        self.shuffle_options = shuffle_options
        self.state = SessionState()
        self._summary: Optional[SessionSummary] = None

    # --- lifecycle ---

    def start_session(
        self,
        mode: str,
        categories: list[str],
        count: int,
        difficulty: str = "adaptive",
        question_type: str = MIXED,
    ) -> bool:
        """Begin a fresh session. Returns False when nothing can be studied."""
        self.state = SessionState()
        self._summary = None
        if not categories:
            logger.debug("start_session rejected: no categories selected")
            return False

        now = self.clock()
        pool = filter_by_difficulty(self.catalog.signs_in(categories), difficulty)
        try:
            items = select_session_items(mode, pool, count, self.store, self.rng, now)
        except PersistenceError as e:
            logger.warning(f"Progress unavailable for {mode!r} selection, using random: {e}")
            items = select_session_items(STANDARD, pool, count, self.store, self.rng, now)
        if not items:
            logger.debug(f"start_session rejected: no signs for {categories} at {difficulty!r}")
            return False

        self.state = SessionState(
            status=ACTIVE,
            mode=mode,
            categories=tuple(categories),
            difficulty=difficulty,
            question_type=question_type,
            items=items,
            started_at=now,
        )
        logger.info(f"Started {mode} session with {len(items)} signs")
        return True

    def current_item(self) -> Optional[Sign]:
        if self.state.status != ACTIVE or self.state.index >= len(self.state.items):
            return None
        return self.state.items[self.state.index]

    def current_question(self) -> Optional[Question]:
        """Question for the current sign, generated once per item."""
        sign = self.current_item()
        if sign is None:
            return None
        if self.state.question is None or self.state.question.sign.id != sign.id:
            self.state.question = generate_question(
                sign,
                self.catalog.all_signs(),
                question_type=self.state.question_type,
                shuffle_options=self.shuffle_options,
                rng=self.rng,
                now=self.clock(),
                hard=self.state.difficulty == "hard",
            )
        return self.state.question

    def answer_current(self, selected_id: str, response_time_ms: Optional[float] = None) -> AnswerResult:
        """Grade the current sign and record it.

        A failed write is logged and reported as `saved=False`; the session
        keeps going on its in-memory state.
        """
        state = self.state
        if state.status != ACTIVE:
            raise SessionError(f"Cannot answer in {state.status} state")
        if state.current_answered:
            raise SessionError("Current sign already answered")

        sign = state.items[state.index]
        if response_time_ms is None:
            question = self.current_question()
            elapsed = self.clock() - question.started_at
            response_time_ms = elapsed.total_seconds() * 1000

        is_correct = selected_id == sign.id
        state.current_answered = True
        state.answered.append(sign)
        if is_correct:
            state.correct += 1
            state.streak += 1
            state.best_streak = max(state.best_streak, state.streak)
        else:
            state.streak = 0
            state.missed.append(sign)

        saved = True
        try:
            record_answer(self.store, sign.id, sign.category_id, is_correct, response_time_ms, self.clock())
        except PersistenceError as e:
            logger.warning(f"Could not save answer for {sign.id}: {e}")
            saved = False

        return AnswerResult(
            is_correct=is_correct,
            correct_item=sign,
            response_time_ms=response_time_ms,
            streak=state.streak,
            saved=saved,
        )

    def advance(self) -> bool:
        """Move to the next sign. Past the last one the session is finalized."""
        state = self.state
        if state.status != ACTIVE:
            raise SessionError(f"Cannot advance in {state.status} state")
        state.index += 1
        state.current_answered = False
        state.question = None
        if state.index >= len(state.items):
            self.finalize()
            return False
        return True

    def finalize(self) -> SessionSummary:
        """Close the session and persist its results.

        Only answered signs count. Repeated calls return the same summary.
        """
        state = self.state
        if state.status == FINISHED and self._summary is not None:
            return self._summary
        if state.status != ACTIVE:
            raise SessionError(f"Cannot finalize in {state.status} state")

        state.ended_at = self.clock()
        state.status = FINISHED
        total = len(state.answered)
        percentage = round_half_up(100 * state.correct / total) if total else 0
        duration_ms = int((state.ended_at - state.started_at).total_seconds() * 1000)
        missed = [MissedItem(s.id, s.name) for s in state.missed]
        best_streak = max(state.streak, state.best_streak)

        saved = self._persist_results(state, missed, percentage, duration_ms, best_streak) if total else True

        logger.info(f"Finished {state.mode} session: {state.correct}/{total} ({percentage}%)")
        self._summary = SessionSummary(
            total_questions=total,
            correct_answers=state.correct,
            missed=missed,
            percentage=percentage,
            duration_ms=duration_ms,
            best_streak=best_streak,
            saved=saved,
        )
        return self._summary

    def _persist_results(self, state: SessionState, missed: list[MissedItem], percentage: int,
                         duration_ms: int, best_streak: int) -> bool:
        saved = True
        try:
            self.store.put(QUIZ_SESSIONS, QuizSession(
                date=state.ended_at,
                categories=state.categories,
                mode=state.mode,
                difficulty=state.difficulty,
                question_type=state.question_type,
                total_questions=len(state.answered),
                correct_answers=state.correct,
                wrong_answers=tuple(missed),
                percentage=percentage,
                duration_ms=duration_ms,
                best_streak=best_streak,
            ))
        except PersistenceError as e:
            logger.warning(f"Could not save quiz session: {e}")
            saved = False

        # Category stats accumulate; a failure here leaves item records ahead of them.
        category_totals: dict[str, int] = {}
        for sign in state.answered:
            category_totals[sign.category_id] = category_totals.get(sign.category_id, 0) + 1
        for category_id, category_total in category_totals.items():
            wrong = sum(1 for s in state.missed if s.category_id == category_id)
            try:
                self.store.accumulate_category_stat(
                    category_id, category_total - wrong, category_total, state.ended_at
                )
            except PersistenceError as e:
                logger.warning(f"Could not update stats for category {category_id}: {e}")
                saved = False
        return saved

    # --- read side ---

    def get_progress_snapshot(self) -> ProgressSnapshot:
        state = self.state
        total = len(state.items)
        current = min(state.index + 1, total) if total else 0
        return ProgressSnapshot(
            status=state.status,
            current=current,
            total=total,
            percentage=(current / total) * 100 if total else 0.0,
            correct=state.correct,
            streak=state.streak,
            best_streak=state.best_streak,
        )

    def get_recommendations(self) -> list[Recommendation]:
        return get_recommendations(self.store, self.catalog, self.clock())

    def get_at_risk_signs(self, limit: int = 10) -> list[dict]:
        """Studied signs the predictor expects to be answered wrong next."""
        return most_likely_to_fail(self.store, self.catalog, self.predictor, limit, self.clock())
