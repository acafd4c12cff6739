"""Monitoring service - orchestrates profile management and evaluation."""

import asyncio
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Set, Tuple

import structlog

from credit_monitor.application.dto import (
    BatchReport,
    EvaluationResult,
    FailedObservation,
    ProfileRequest,
)
from credit_monitor.core.config import settings as app_settings
from credit_monitor.core.metrics import (
    record_alert,
    record_cas_conflict,
    record_evaluation,
    record_requeued,
    record_suppressed,
    track_evaluation_latency,
)
from credit_monitor.domain.entities import MonitoringProfile, Observation
from credit_monitor.domain.entities.clock import utcnow
from credit_monitor.domain.exceptions import (
    ConfigurationError,
    DomainException,
    ProfileNotFoundException,
)
from credit_monitor.domain.interfaces import MonitoringProfileRepository
from credit_monitor.service.monitoring import (
    Evaluation,
    MonitoringSettings,
    NotificationScheduler,
    evaluate,
    is_applied,
    monitoring_settings,
)

logger = structlog.get_logger(__name__)

# Optimistic retries for configuration updates racing another process.
MAX_UPDATE_ATTEMPTS = 3

# Evaluation attempts against a newer profile before the observation is requeued.
MAX_COMMIT_ATTEMPTS = 3


class MonitoringService:
    """
    Application service for monitoring use cases.

    Evaluations and configuration updates of one business never
    interleave: each business has its own lock, held only while someone
    uses it, and identical in-flight observations share one evaluation.
    The state commit is a versioned compare-and-swap that also writes the
    new alerts. A commit lost to another writer is evaluated again
    against the winner's state, unless the winner already applied it.
    """

    def __init__(
        self,
        profile_repository: MonitoringProfileRepository,
        scheduler: NotificationScheduler,
        settings: MonitoringSettings = monitoring_settings,
        max_workers: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._profile_repo = profile_repository
        self._scheduler = scheduler
        self._settings = settings
        self._max_workers = max_workers or app_settings.monitoring_workers
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._in_flight: Dict[Tuple[str, str], asyncio.Task] = {}

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def create_profile(self, request: ProfileRequest) -> MonitoringProfile:
        """
        Create a monitoring profile for a business.

        Raises:
            ConfigurationError: If the thresholds are inconsistent
            DuplicateProfileException: If the business already has a profile
        """
        errors = request.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        profile = await self._profile_repo.create(request.to_entity())
        logger.info(
            "monitoring_profile_created",
            business_id=profile.business_id,
            profile_id=str(profile.id),
            frequency=profile.frequency.value,
        )
        return profile

    async def get_profile(self, business_id: str) -> MonitoringProfile:
        """
        Raises:
            ProfileNotFoundException: If the business has no profile
        """
        profile = await self._profile_repo.get_by_business_id(business_id)
        if profile is None:
            raise ProfileNotFoundException(business_id)
        return profile

    async def update_profile(self, request: ProfileRequest) -> MonitoringProfile:
        """
        Replace a profile's configuration, keeping its rolling state.

        Waits for any evaluation of the business in progress. Changing the
        score band re-arms the band check for the current score.

        Raises:
            ConfigurationError: If the thresholds are inconsistent
            ProfileNotFoundException: If the business has no profile
        """
        errors = request.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        wanted = request.to_entity()
        async with self._exclusive(request.business_id):
            for _ in range(MAX_UPDATE_ATTEMPTS):
                current = await self.get_profile(request.business_id)
                state = current.state
                if wanted.score_band_differs(current):
                    state = replace(state, band_rearmed=True)
                candidate = replace(
                    wanted,
                    id=current.id,
                    state=state,
                    version=current.version,
                    created_at=current.created_at,
                )
                stored = await self._profile_repo.update(candidate, current.version)
                if stored is not None:
                    logger.info(
                        "monitoring_profile_updated",
                        business_id=stored.business_id,
                        version=stored.version,
                        band_rearmed=stored.state.band_rearmed,
                    )
                    return stored

        raise ConfigurationError(
            f"Profile for business {request.business_id} kept changing during update"
        )

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    async def evaluate(self, observation: Observation) -> EvaluationResult:
        """
        Evaluate one observation for its business.

        A call for an observation that is already being evaluated waits
        for that evaluation and returns its result.

        Raises:
            ProfileNotFoundException: If the business has no profile
        """
        key = observation.key
        running = self._in_flight.get(key)
        if running is not None:
            logger.debug(
                "evaluation_joined",
                business_id=observation.business_id,
                observation_id=observation.observation_id,
            )
            return await asyncio.shield(running)

        task = asyncio.ensure_future(self._evaluate_exclusive(observation))
        self._in_flight[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return await task

    def _forget(self, key: Tuple[str, str], task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    @asynccontextmanager
    async def _exclusive(self, business_id: str) -> AsyncIterator[None]:
        """Hold the business's lock. The lock is dropped once nobody holds or awaits it."""
        lock = self._locks.get(business_id)
        if lock is None:
            lock = self._locks[business_id] = asyncio.Lock()
        self._lock_users[business_id] = self._lock_users.get(business_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[business_id] - 1
            if remaining:
                self._lock_users[business_id] = remaining
            else:
                del self._lock_users[business_id]
                del self._locks[business_id]

    @property
    def locked_businesses(self) -> int:
        """Number of businesses with an evaluation or update running or waiting."""
        return len(self._locks)

    async def _evaluate_exclusive(self, observation: Observation) -> EvaluationResult:
        log = logger.bind(
            business_id=observation.business_id,
            observation_id=observation.observation_id,
        )

        async with self._exclusive(observation.business_id):
            with track_evaluation_latency():
                for attempt in range(1, MAX_COMMIT_ATTEMPTS + 1):
                    profile = await self.get_profile(observation.business_id)

                    if not profile.is_active:
                        record_evaluation("skipped")
                        log.info("evaluation_skipped_inactive")
                        return EvaluationResult(
                            business_id=observation.business_id,
                            observation_id=observation.observation_id,
                            profile=profile,
                            skipped=True,
                        )

                    evaluation = evaluate(profile, observation, self._clock(), self._settings)

                    commit = asyncio.ensure_future(
                        self._commit(profile, observation, evaluation)
                    )
                    try:
                        result = await asyncio.shield(commit)
                    except asyncio.CancelledError:
                        # The commit in progress finishes; no further attempt is made.
                        log.warning("evaluation_cancelled_during_commit")
                        result = await commit
                        return self._settle(result, observation, evaluation)

                    if not result.conflict:
                        return result
                    if is_applied(result.profile, observation, evaluation):
                        log.info("evaluation_already_applied", attempt=attempt)
                        return result

                    log.info("evaluation_retrying", attempt=attempt)

                return self._settle(result, observation, evaluation)

    def _settle(
        self,
        result: EvaluationResult,
        observation: Observation,
        evaluation: Evaluation,
    ) -> EvaluationResult:
        """Mark a lost commit for requeue unless the winner already applied it."""
        if not result.conflict or is_applied(result.profile, observation, evaluation):
            return result

        record_evaluation("requeued")
        logger.warning(
            "evaluation_requeued_after_conflict",
            business_id=observation.business_id,
            observation_id=observation.observation_id,
        )
        return replace(result, requeue=True)

    async def _commit(
        self,
        profile: MonitoringProfile,
        observation: Observation,
        evaluation: Evaluation,
    ) -> EvaluationResult:
        log = logger.bind(
            business_id=profile.business_id,
            profile_id=str(profile.id),
        )

        stored = await self._profile_repo.commit_evaluation(
            evaluation.profile,
            profile.version,
            evaluation.alerts,
        )

        if stored is None:
            record_cas_conflict()
            record_evaluation("conflict")
            winner = await self._profile_repo.get_by_id(profile.id)
            log.warning(
                "evaluation_commit_conflict",
                expected_version=profile.version,
                current_version=winner.version if winner else None,
            )
            return EvaluationResult(
                business_id=profile.business_id,
                observation_id=observation.observation_id,
                profile=winner,
                conflict=True,
            )

        for alert in evaluation.alerts:
            record_alert(alert.category.value, alert.severity.value)
        for category in evaluation.suppressed:
            record_suppressed(category.value)

        tickets = await self._scheduler.schedule(stored, evaluation.alerts)

        record_evaluation("alerted" if evaluation.alerts else "quiet")
        log.info(
            "evaluation_committed",
            version=stored.version,
            alerts=len(evaluation.alerts),
            suppressed=len(evaluation.suppressed),
            replayed=len(evaluation.replayed),
            tickets=len(tickets),
        )

        return EvaluationResult(
            business_id=profile.business_id,
            observation_id=observation.observation_id,
            alerts=evaluation.alerts,
            tickets=tuple(tickets),
            suppressed=evaluation.suppressed,
            profile=stored,
        )

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    async def run_batch(
        self,
        observations: Iterable[Observation],
        timeout: Optional[float] = None,
    ) -> BatchReport:
        """
        Evaluate many observations concurrently.

        Observations of one business run in order; different businesses
        run in parallel, bounded by the worker limit. When the timeout
        expires, unfinished work is cancelled before its commit and
        returned for requeue. An observation that keeps losing its commit
        to other writers is requeued too, along with the later
        observations of its business.

        Args:
            observations: Observations in arrival order
            timeout: Seconds before unfinished work is cancelled

        Returns:
            BatchReport with results, requeued and failed observations
        """
        observations = list(observations)
        timeout = timeout if timeout is not None else app_settings.batch_timeout_seconds

        groups: "OrderedDict[str, List[Observation]]" = OrderedDict()
        for observation in observations:
            groups.setdefault(observation.business_id, []).append(observation)

        semaphore = asyncio.Semaphore(self._max_workers)
        stop = asyncio.Event()
        results: List[EvaluationResult] = []
        failed: List[FailedObservation] = []
        finished: Set[int] = set()

        async def run_group(items: List[Observation]) -> None:
            async with semaphore:
                for observation in items:
                    if stop.is_set():
                        return
                    try:
                        result = await self.evaluate(observation)
                    except DomainException as e:
                        failed.append(FailedObservation(observation, e.code, e.message))
                    except Exception as e:
                        logger.exception(
                            "batch_observation_failed",
                            business_id=observation.business_id,
                            observation_id=observation.observation_id,
                        )
                        failed.append(FailedObservation(observation, "UNEXPECTED_ERROR", str(e)))
                    else:
                        if result.requeue:
                            # Later observations of the business stay behind it.
                            return
                        results.append(result)
                    finished.add(id(observation))

        tasks = [asyncio.ensure_future(run_group(items)) for items in groups.values()]
        if not tasks:
            return BatchReport()

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            stop.set()
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        requeued = [o for o in observations if id(o) not in finished]
        record_requeued(len(requeued))

        logger.info(
            "batch_completed",
            observations=len(observations),
            businesses=len(groups),
            evaluated=len(results),
            failed=len(failed),
            requeued=len(requeued),
        )
        return BatchReport(results=results, requeued=requeued, failed=failed)
