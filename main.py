"""
Banzuke career simulator main
"""
import json
import sys
from pathlib import Path
from loguru import logger

from simulation.config import simulation_config, runner_config
from simulation.persistence import save_snapshot, snapshot_path
from simulation.runner import BatchReport, run_batch


# logging
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=simulation_config.log_level
)
logger.add(
    f"{simulation_config.log_dir}/simulation_{{time:YYYY-MM-DD}}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


def print_table(report: BatchReport) -> None:
    """Fixed-width career summary"""
    header = f"{'seed':>10}  {'basho':>5}  {'record':>11}  {'yusho':>5}  {'highest':<14}  {'status':<8}"
    print(header)
    print("-" * len(header))
    for result in report.results:
        summary = result.snapshot.summary()
        print(
            f"{result.snapshot.seed:>10}  {summary['basho']:>5}  {summary['record']:>11}  "
            f"{summary['championships']:>5}  {str(summary['highest_rank']):<14}  {summary['status']:<8}"
        )
    balance = report.balance
    print(f"\nbalance: {balance.get('health_status')} ({balance.get('overall_health', 0):.0%})")
    for alert in balance.get("alerts", []):
        print(f"  [{alert['severity']}] {alert['message']}")


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Banzuke career simulator")
    parser.add_argument("--runs", type=int, default=runner_config.runs, help="Careers to simulate")
    parser.add_argument("--seed", type=int, default=simulation_config.seed, help="First seed")
    parser.add_argument("--workers", type=int, default=runner_config.workers, help="Worker processes")
    parser.add_argument("--max-basho", type=int, default=simulation_config.max_basho, help="Cycle cap per career")
    parser.add_argument("--output", type=str, default=None, help="JSON report path")

    args = parser.parse_args()

    config = simulation_config.model_copy(update={"max_basho": args.max_basho})
    seeds = [args.seed + i for i in range(args.runs)]
    logger.info(f"Simulating {len(seeds)} careers from seed {args.seed}")

    report = run_batch(seeds, workers=args.workers, config=config)
    print_table(report)

    if config.output_dir:
        for snapshot in report.snapshots:
            save_snapshot(snapshot, snapshot_path(config.output_dir, snapshot))

    if args.output:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, ensure_ascii=False, indent=2, default=str)
        logger.info(f"Report written to {path}")

    if report.balance.get("health_status") == "unhealthy":
        sys.exit(1)


if __name__ == "__main__":
    main()
