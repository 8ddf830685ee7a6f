import concurrent.futures
import math

import numpy as np
import pytest
from scipy.optimize import minimize_scalar
from scipy.stats import sem

from fsrs_retention.exceptions import (
    FSRSError,
    Interrupted,
    InvalidParameters,
    OptimalNotFound,
)
from fsrs_retention.optimizer import (
    R_MAX,
    R_MIN,
    SAMPLE_SIZE,
    brent,
    optimal_retention,
    run_single_sample,
    sample,
)
from fsrs_retention.simulate_fsrs import simulate
from fsrs_retention.simulation_config import SimulatorConfig
from fsrs_retention.utils import DEFAULT_PARAMETERS

SMALL_CONFIG = SimulatorConfig(
    deck_size=600,
    learn_span=120,
    learn_limit=5,
    max_cost_perday=math.inf,
)


def quadratic(x: float) -> float:
    return (x - 0.83) ** 2


def test_brent_matches_scipy_bounded() -> None:
    reference = minimize_scalar(quadratic, bounds=(R_MIN, R_MAX), method="bounded")
    result = brent(quadratic)

    assert R_MIN <= result.x <= R_MAX
    assert result.x == pytest.approx(reference.x, abs=0.01)
    assert result.fun == pytest.approx(quadratic(result.x))
    assert result.nit < 64


def test_brent_monotone_objective_stays_in_bracket() -> None:
    result = brent(lambda x: -x)
    assert 0.9 < result.x <= R_MAX


def test_brent_counts_evaluations() -> None:
    calls: list[int] = []
    evaluated: list[float] = []

    def progress(i: int) -> bool:
        calls.append(i)
        return True

    def func(x: float) -> float:
        evaluated.append(x)
        return quadratic(x)

    result = brent(func, progress=progress)

    assert calls == list(range(1, len(evaluated) + 1))
    assert result.nfev == len(evaluated)
    # The first trial point is the lower bound
    assert evaluated[0] == R_MIN
    assert all(R_MIN <= x <= R_MAX for x in evaluated)


def test_brent_interrupt_stops_before_evaluation() -> None:
    evaluated: list[float] = []

    def func(x: float) -> float:
        evaluated.append(x)
        return quadratic(x)

    with pytest.raises(Interrupted):
        brent(func, progress=lambda i: i < 3)
    assert len(evaluated) == 2


def test_brent_exhausted_iterations() -> None:
    with pytest.raises(OptimalNotFound):
        brent(quadratic, maxiter=1)


def test_brent_handles_noisy_objective() -> None:
    rng = np.random.default_rng(0)
    result = brent(lambda x: quadratic(x) + rng.normal(0, 1e-4))
    assert R_MIN <= result.x <= R_MAX


def test_run_single_sample_is_cost_per_memorized() -> None:
    run = simulate(SMALL_CONFIG, DEFAULT_PARAMETERS, 0.9, seed=42)
    expected = run.cost_per_day.sum() / run.memorized_cnt_per_day[-1]
    efficiency = run_single_sample((SMALL_CONFIG, DEFAULT_PARAMETERS, 0.9, 42))
    assert efficiency == pytest.approx(expected, rel=1e-12)


def test_run_single_sample_without_memorization() -> None:
    config = SimulatorConfig(deck_size=0, learn_span=10)
    assert run_single_sample((config, DEFAULT_PARAMETERS, 0.9, 42)) == math.inf


def test_sample_is_reproducible() -> None:
    first = sample(SMALL_CONFIG, DEFAULT_PARAMETERS, 0.85, seed_offset=7)
    second = sample(SMALL_CONFIG, DEFAULT_PARAMETERS, 0.85, seed_offset=7)
    assert first == second

    seeds = range(7, 7 + SAMPLE_SIZE)
    efficiencies = [
        run_single_sample((SMALL_CONFIG, DEFAULT_PARAMETERS, 0.85, s)) for s in seeds
    ]
    assert first == pytest.approx(np.mean(efficiencies), rel=1e-12)


def test_sample_parallel_matches_serial() -> None:
    serial = sample(SMALL_CONFIG, DEFAULT_PARAMETERS, 0.9)
    with concurrent.futures.ProcessPoolExecutor(max_workers=2) as executor:
        parallel = sample(SMALL_CONFIG, DEFAULT_PARAMETERS, 0.9, executor=executor)
    assert parallel == pytest.approx(serial, rel=1e-12)


def test_sample_mean_close_to_large_repeat_reference() -> None:
    n_reference = 32
    # Seeds disjoint from the estimate's own 42..45
    reference = [
        run_single_sample((SMALL_CONFIG, DEFAULT_PARAMETERS, 0.9, 1000 + i))
        for i in range(n_reference)
    ]
    estimate = sample(SMALL_CONFIG, DEFAULT_PARAMETERS, 0.9)

    # Standard error of the difference of two independent means
    spread = sem(reference) * math.sqrt(n_reference)
    tolerance = 4 * spread * math.sqrt(1 / SAMPLE_SIZE + 1 / n_reference)
    assert abs(estimate - np.mean(reference)) <= tolerance


def test_optimal_retention_in_bounds() -> None:
    calls: list[int] = []

    def progress(i: int) -> bool:
        calls.append(i)
        return True

    retention = optimal_retention(SMALL_CONFIG, [], progress, max_workers=0)

    assert R_MIN <= retention <= R_MAX
    assert calls == list(range(1, len(calls) + 1))
    assert len(calls) >= 2
    # Same seed offset, same answer
    assert optimal_retention(SMALL_CONFIG, [], max_workers=0) == retention


def test_optimal_retention_process_pool() -> None:
    config = SimulatorConfig(
        deck_size=200, learn_span=60, learn_limit=3, max_cost_perday=math.inf
    )
    serial = optimal_retention(config, DEFAULT_PARAMETERS, max_workers=0)
    parallel = optimal_retention(config, DEFAULT_PARAMETERS, max_workers=2)
    assert R_MIN <= parallel <= R_MAX
    assert parallel == pytest.approx(serial, abs=1e-9)


def test_optimal_retention_rejects_bad_parameters() -> None:
    calls: list[int] = []

    def progress(i: int) -> bool:
        calls.append(i)
        return True

    with pytest.raises(InvalidParameters):
        optimal_retention(SMALL_CONFIG, [0.1] * 18, progress, max_workers=0)
    with pytest.raises(FSRSError):
        optimal_retention(SMALL_CONFIG, [1.0], progress, max_workers=0)
    assert calls == []


def test_optimal_retention_interrupted() -> None:
    with pytest.raises(Interrupted):
        optimal_retention(SMALL_CONFIG, [], lambda i: False, max_workers=0)
