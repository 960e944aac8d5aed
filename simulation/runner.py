"""
Career runner

run_simulation drives one career to completion; run_batch simulates
independent careers, each with its own world and random source, optionally
across worker processes, and aggregates a balance report.
"""
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .collaborators import RandomSource, seeded_random
from .config import SimulationConfig, simulation_config
from .engine import CareerEngine
from .events import CareerEventType
from .monitoring import BalanceMonitor
from .schemas import CareerSnapshot


@dataclass
class CareerResult:
    snapshot: CareerSnapshot
    unmatched_cycles: int = 0
    issue_count: int = 0
    event_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.snapshot.summary(),
            "unmatched_cycles": self.unmatched_cycles,
            "issue_count": self.issue_count,
            "event_counts": self.event_counts,
        }


@dataclass
class BatchReport:
    results: List[CareerResult] = field(default_factory=list)
    balance: Dict[str, Any] = field(default_factory=dict)

    @property
    def snapshots(self) -> List[CareerSnapshot]:
        return [r.snapshot for r in self.results]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "careers": [r.to_dict() for r in self.results],
            "balance": self.balance,
        }


def run_simulation(
    config: Optional[SimulationConfig] = None,
    rng: Optional[RandomSource] = None,
    engine: Optional[CareerEngine] = None,
) -> CareerResult:
    """Step one career until it completes"""
    config = config or simulation_config
    engine = engine or CareerEngine(config, rng or seeded_random(config.seed))
    issue_count = 0
    while True:
        step = engine.step()
        if step.is_completed:
            break
        issue_count += len(step.issues)

    counts = {
        t.value: engine.publisher.count(t)
        for t in CareerEventType
        if engine.publisher.count(t)
    }
    snapshot = engine.snapshot()
    logger.info(
        f"Career {config.seed}: {snapshot.basho_count} basho, "
        f"highest {snapshot.summary()['highest_rank']}"
    )
    return CareerResult(
        snapshot=snapshot,
        unmatched_cycles=engine.unmatched_cycles,
        issue_count=issue_count,
        event_counts=counts,
    )


def _run_seed(config: SimulationConfig) -> CareerResult:
    return run_simulation(config, seeded_random(config.seed))


def run_batch(
    seeds: Sequence[int],
    workers: int = 1,
    config: Optional[SimulationConfig] = None,
    monitor: Optional[BalanceMonitor] = None,
) -> BatchReport:
    """Independent careers, one per seed, in seed order"""
    base = config or simulation_config
    configs = [base.model_copy(update={"seed": seed}) for seed in seeds]

    if workers > 1 and len(configs) > 1:
        logger.info(f"Running {len(configs)} careers on {workers} workers")
        with ProcessPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(_run_seed, configs))
    else:
        results = [_run_seed(c) for c in configs]

    monitor = monitor or BalanceMonitor()
    snapshots = [r.snapshot for r in results]
    total_cycles = sum(s.basho_count for s in snapshots)
    monitor.check_invariants(snapshots)
    monitor.check_unmatched_mandatory(sum(r.unmatched_cycles for r in results), total_cycles)
    monitor.check_sekitori_reach(snapshots)
    monitor.check_career_length(snapshots)
    return BatchReport(results=results, balance=monitor.get_report())
