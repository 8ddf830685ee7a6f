import math
import os
import sys
import time

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fsrs_retention.optimizer import optimal_retention
from fsrs_retention.simulate_fsrs import simulate
from fsrs_retention.simulation_config import SimulatorConfig
from fsrs_retention.utils import DEFAULT_PARAMETERS


def run_bench(deck_size: int, learn_span: int, label: str) -> tuple[float, float]:
    config = SimulatorConfig(deck_size=deck_size, learn_span=learn_span)

    print(f"Running benchmark: {label}...")
    start = time.perf_counter()
    result = simulate(config, DEFAULT_PARAMETERS, 0.9, seed=42)
    end = time.perf_counter()

    duration = end - start
    rev_count = int(result.review_cnt_per_day.sum())
    card_count = int(result.learn_cnt_per_day.sum())
    ips = rev_count / duration if duration > 0 else 0

    print(f"  Duration:  {duration:.2f}s")
    print(f"  Reviews:   {rev_count}")
    print(f"  Cards:     {card_count}")
    print(f"  Memorized: {result.final_memorized:.2f}")
    print(f"  Rev/sec:   {ips:.2f}")
    print("-" * 30)
    return duration, ips


def run_optimal_retention_bench(learn_span: int, learn_limit: int) -> float:
    config = SimulatorConfig(
        deck_size=learn_span * learn_limit,
        learn_span=learn_span,
        max_cost_perday=math.inf,
        learn_limit=learn_limit,
    )

    print(
        f"Running optimal retention: {learn_span} days x {learn_limit} cards/day..."
    )
    start = time.perf_counter()
    retention = optimal_retention(config, DEFAULT_PARAMETERS, verbose=True)
    duration = time.perf_counter() - start

    print(f"  Retention: {retention:.4f}")
    print(f"  Duration:  {duration:.2f}s")
    print("-" * 30)
    return retention


if __name__ == "__main__":
    # Small benchmark
    run_bench(1000, 180, "Small Deck (1k cards, 180 days)")

    # Large benchmark
    run_bench(10000, 365, "Large Deck (10k cards, 365 days)")

    run_optimal_retention_bench(1000, 10)
