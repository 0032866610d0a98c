"""
Background usage aggregation.

Polls the Xray stats API on a fixed interval, folds the raw per-user
counters into the persisted accumulator, applies the quota/expiry policy
and publishes an immutable snapshot for the read path.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple
from config.app_config import AggregatorConfig
from core.exceptions import StoreError
from core.logging_config import LoggerMixin
from core.scheduler import Clock, Scheduler, ThreadScheduler
from core.share_link import ShareLinkBuilder
from core.types import Trigger, UsageKey
from data.models import UsageEntry, UserRecord, UserSnapshot
from data.usage_repository import UsageRepository
from data.user_repository import UserRepository
from service.usage_policy import build_snapshot, reconcile

SLOW_CYCLE_SECONDS = 1.0

@dataclass(frozen=True)
class AggregateSnapshot:
    users: Tuple[UserSnapshot, ...]
    completed_at: float
    trigger: Trigger

class UsageAggregator(LoggerMixin):
    """Owns the usage snapshot, the in-flight guard and the polling schedule."""

    def __init__(self, user_repo: UserRepository, usage_repo: UsageRepository, stats_client,
                 links: ShareLinkBuilder, config: Optional[AggregatorConfig] = None,
                 scheduler: Optional[Scheduler] = None, clock: Optional[Clock] = None,
                 on_policy_change: Optional[Callable[[List[UserRecord]], None]] = None):
        self.user_repo = user_repo
        self.usage_repo = usage_repo
        self.stats_client = stats_client
        self.links = links
        self.config = config or AggregatorConfig()
        self.scheduler = scheduler or ThreadScheduler()
        self.clock = clock or Clock()
        self.on_policy_change = on_policy_change

        self._in_flight = threading.Lock()
        self._counter_lock = threading.Lock()
        self._snapshot: Optional[AggregateSnapshot] = None

        self.cycles_requested = 0
        self.cycles_executed = 0
        self.cycles_failed = 0
        self.usage_store_writes = 0
        self.user_store_writes = 0
        self.last_duration = 0.0

    # Scheduling -------------------------------------------------------

    def start(self) -> None:
        self.scheduler.call_every(self.config.interval, lambda: self.run_cycle(Trigger.INTERVAL))
        self.scheduler.call_later(self.config.startup_delay, lambda: self.run_cycle(Trigger.STARTUP))
        self.logger.info("Usage aggregation started", interval=self.config.interval,
                         concurrency=self.config.concurrency)

    def stop(self) -> None:
        self.scheduler.shutdown()

    def request_refresh(self, trigger: Trigger = Trigger.MANUAL) -> None:
        """Schedule a cycle soon. Never runs it on the caller's thread."""
        self.scheduler.call_later(self.config.refresh_delay, lambda: self.run_cycle(trigger))

    @property
    def in_flight(self) -> bool:
        return self._in_flight.locked()

    # Cycle ------------------------------------------------------------

    def _count(self, counter: str) -> None:
        with self._counter_lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def run_cycle(self, trigger: Trigger = Trigger.MANUAL) -> bool:
        """Run one aggregation cycle. Returns False if skipped or aborted."""
        self._count("cycles_requested")
        if not self._in_flight.acquire(blocking=False):
            self.logger.debug("Aggregation skipped, previous cycle still running", trigger=trigger.value)
            return False

        started = self.clock.monotonic()
        try:
            self._count("cycles_executed")
            self._aggregate(trigger)
            return True
        except StoreError as e:
            self._count("cycles_failed")
            self.logger.error("Aggregation cycle aborted", trigger=trigger.value, error=str(e))
            return False
        except Exception as e:
            self._count("cycles_failed")
            self.logger.error("Unexpected error in aggregation cycle", trigger=trigger.value,
                              error=str(e), error_type=type(e).__name__)
            return False
        finally:
            self.last_duration = self.clock.monotonic() - started
            if self.last_duration > SLOW_CYCLE_SECONDS:
                self.logger.info("Slow aggregation cycle", trigger=trigger.value,
                                 duration_ms=round(self.last_duration * 1000))
            self._in_flight.release()

    def _aggregate(self, trigger: Trigger) -> None:
        users = self.user_repo.get_all_users()
        entries = self.usage_repo.load()

        raw_usage = self._collect_raw_usage(users)
        store_changed = False
        for key, raw_bytes in raw_usage.items():
            if raw_bytes is None:
                continue
            entry, changed = reconcile(entries.get(key), raw_bytes)
            if changed:
                entries[key] = entry
                store_changed = True

        if store_changed:
            self.usage_repo.save(entries)
            self._count("usage_store_writes")

        now = self.clock.now()
        snapshots: List[UserSnapshot] = []
        disabled_ids: Set[int] = set()
        for user in users:
            snapshot = build_snapshot(user, entries.get(user.usage_key) or UsageEntry(), now, self.links)
            if user.enabled and not snapshot.enabled:
                disabled_ids.add(user.id)
            snapshots.append(snapshot)

        if disabled_ids:
            self._persist_policy_disables(disabled_ids)

        self._snapshot = AggregateSnapshot(
            users=tuple(snapshots),
            completed_at=self.clock.monotonic(),
            trigger=trigger,
        )

    def _collect_raw_usage(self, users: List[UserRecord]) -> Dict[UsageKey, Optional[int]]:
        """Query every distinct user once through a bounded worker pool."""
        targets: Dict[UsageKey, str] = {}
        for user in users:
            targets.setdefault(user.usage_key, user.stat_key)
        if not targets:
            return {}

        workers = min(self.config.concurrency, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="usage-query") as pool:
            results = pool.map(self._query_raw, targets.values())
            return dict(zip(targets.keys(), results))

    def _query_raw(self, stat_key: str) -> Optional[int]:
        try:
            raw_bytes = self.stats_client.query(stat_key)
        except Exception as e:
            self.logger.warning("Usage query failed", stat_key=stat_key, error=str(e))
            return None
        return max(0, int(raw_bytes))

    def _persist_policy_disables(self, disabled_ids: Set[int]) -> None:
        # Re-read so edits made while the cycle was querying are kept
        users = self.user_repo.get_all_users()
        changed = []
        for user in users:
            if user.id in disabled_ids and user.enabled:
                user.enabled = False
                changed.append(user.username)
        if not changed:
            return

        self.user_repo.replace_all(users)
        self._count("user_store_writes")
        self.logger.info("Users disabled by quota/expiry policy", usernames=changed)

        if self.on_policy_change is not None:
            try:
                self.on_policy_change(users)
            except Exception as e:
                self.logger.error("Client sync after policy change failed", error=str(e))

    # Read path --------------------------------------------------------

    def get_snapshot(self) -> List[UserSnapshot]:
        """Latest completed snapshot, or a zero-usage view if no cycle has completed yet."""
        snapshot = self._snapshot
        if self._is_stale(snapshot) and not self.in_flight:
            self.request_refresh(Trigger.STALE)
        if snapshot is not None:
            return list(snapshot.users)
        return self._minimal_snapshot()

    def snapshot_age(self) -> Optional[float]:
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return self.clock.monotonic() - snapshot.completed_at

    def _is_stale(self, snapshot: Optional[AggregateSnapshot]) -> bool:
        if snapshot is None:
            return True
        return self.clock.monotonic() - snapshot.completed_at > self.config.interval * 2

    def _minimal_snapshot(self) -> List[UserSnapshot]:
        try:
            users = self.user_repo.get_all_users()
        except StoreError as e:
            self.logger.error("Cannot build fallback snapshot", error=str(e))
            return []
        now = self.clock.now()
        return [build_snapshot(u, UsageEntry(), now, self.links, apply_policy=False) for u in users]

    def stats(self) -> Dict[str, object]:
        age = self.snapshot_age()
        return {
            "cycles_requested": self.cycles_requested,
            "cycles_executed": self.cycles_executed,
            "cycles_failed": self.cycles_failed,
            "usage_store_writes": self.usage_store_writes,
            "user_store_writes": self.user_store_writes,
            "in_flight": self.in_flight,
            "last_duration_ms": round(self.last_duration * 1000, 1),
            "snapshot_age_ms": round(age * 1000) if age is not None else None,
        }
