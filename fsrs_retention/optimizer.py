import concurrent.futures
import contextlib
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from tqdm import tqdm

from .exceptions import Interrupted, OptimalNotFound
from .simulate_fsrs import DEFAULT_SEED, simulate
from .simulation_config import FSRSParameters, SimulatorConfig
from .utils import resolve_parameters

R_MIN = 0.75
R_MAX = 0.95
SAMPLE_SIZE = 4

# Golden section ratio, (3 - sqrt(5)) / 2
CG = 0.3819660

ProgressCallback = Callable[[int], bool]


def run_single_sample(
    task: tuple[SimulatorConfig, FSRSParameters, float, int],
) -> float:
    """Cost paid per unit of memorization for one seeded simulation run."""
    config, params, desired_retention, seed = task
    result = simulate(config, params, desired_retention, seed=seed)
    if len(result.cost_per_day) == 0 or result.final_memorized <= 0:
        return math.inf
    return result.total_cost / result.final_memorized


def sample(
    config: SimulatorConfig,
    parameters: Sequence[float],
    desired_retention: float,
    n: int = SAMPLE_SIZE,
    seed_offset: int = DEFAULT_SEED,
    executor: concurrent.futures.Executor | None = None,
) -> float:
    """
    Mean cost efficiency over n independent runs seeded seed_offset + i.
    Runs are mapped over executor when given, otherwise run serially.
    """
    params = resolve_parameters(parameters)
    tasks = [(config, params, desired_retention, seed_offset + i) for i in range(n)]
    if executor is None:
        efficiencies = list(map(run_single_sample, tasks))
    else:
        efficiencies = list(executor.map(run_single_sample, tasks))
    return sum(efficiencies) / n


@dataclass(frozen=True)
class BrentResult:
    x: float
    fun: float
    nit: int
    nfev: int


def brent(
    func: Callable[[float], float],
    lower: float = R_MIN,
    upper: float = R_MAX,
    progress: ProgressCallback | None = None,
    tol: float = 0.01,
    mintol: float = 1e-10,
    maxiter: int = 64,
) -> BrentResult:
    """
    Bounded Brent minimization of a scalar, possibly noisy, function.

    The bracket starts at [lower, upper] and the first trial point is lower.
    progress(i) is called before the i-th evaluation of func; returning False
    raises Interrupted. Raises OptimalNotFound when maxiter is exhausted or
    the minimizer ends up outside the bracket.
    """
    nfev = 0

    def evaluate(point: float) -> float:
        nonlocal nfev
        nfev += 1
        if progress is not None and not progress(nfev):
            raise Interrupted(f"Interrupted before evaluation {nfev}")
        return func(point)

    xb = lower
    fb = evaluate(xb)
    x = v = w = xb
    fx = fv = fw = fb
    a, b = lower, upper
    deltax = 0.0
    rat = 0.0
    nit = 0

    while nit < maxiter:
        tol1 = tol * abs(x) + mintol
        tol2 = 2.0 * tol1
        xmid = 0.5 * (a + b)
        # check for convergence
        if abs(x - xmid) < tol2 - 0.5 * (b - a):
            break
        if abs(deltax) <= tol1:
            # golden section step
            deltax = (a if x >= xmid else b) - x
            rat = CG * deltax
        else:
            # parabolic step through (x, fx), (v, fv), (w, fw)
            tmp1 = (x - w) * (fx - fv)
            tmp2 = (x - v) * (fx - fw)
            p = (x - v) * tmp2 - (x - w) * tmp1
            tmp2 = 2.0 * (tmp2 - tmp1)
            if tmp2 > 0.0:
                p = -p
            tmp2 = abs(tmp2)
            deltax_tmp = deltax
            deltax = rat
            if (
                p > tmp2 * (a - x)
                and p < tmp2 * (b - x)
                and abs(p) < abs(0.5 * tmp2 * deltax_tmp)
            ):
                rat = p / tmp2
                u = x + rat
                if (u - a) < tol2 or (b - u) < tol2:
                    rat = tol1 if xmid - x >= 0.0 else -tol1
            else:
                deltax = (a if x >= xmid else b) - x
                rat = CG * deltax

        # move by at least tol1
        if abs(rat) < tol1:
            u = x + (tol1 if rat >= 0.0 else -tol1)
        else:
            u = x + rat
        fu = evaluate(u)

        if fu > fx:
            if u < x:
                a = u
            else:
                b = u
            if fu <= fw or w == x:
                v, w = w, u
                fv, fw = fw, fu
            elif fu <= fv or v == x or v == w:
                v = u
                fv = fu
        else:
            if u >= x:
                a = x
            else:
                b = x
            v, w, x = w, x, u
            fv, fw, fx = fw, fx, fu
        nit += 1

    if nit < maxiter and lower <= x <= upper:
        return BrentResult(x=x, fun=fx, nit=nit, nfev=nfev)
    raise OptimalNotFound(
        f"No optimum in [{lower}, {upper}] after {nit} iterations (x={x})"
    )


def optimal_retention(
    config: SimulatorConfig,
    parameters: Sequence[float] = (),
    progress: ProgressCallback | None = None,
    max_workers: int | None = None,
    seed_offset: int = DEFAULT_SEED,
    verbose: bool = False,
) -> float:
    """
    Desired retention in [R_MIN, R_MAX] minimizing simulated cost per
    memorized card. An empty parameter vector selects the defaults.
    max_workers=0 runs the Monte Carlo repeats serially in this process.
    """
    params = resolve_parameters(parameters)

    executor_cm: Any = (
        contextlib.nullcontext(None)
        if max_workers == 0
        else concurrent.futures.ProcessPoolExecutor(
            max_workers=max_workers or SAMPLE_SIZE
        )
    )
    with executor_cm as executor, tqdm(
        desc="Optimizing retention", unit="eval", leave=False, disable=not verbose
    ) as pbar:

        def objective(desired_retention: float) -> float:
            fun = sample(
                config,
                params,
                desired_retention,
                SAMPLE_SIZE,
                seed_offset,
                executor,
            )
            pbar.update(1)
            pbar.set_postfix(retention=f"{desired_retention:.4f}", cost=f"{fun:.2f}")
            return fun

        result = brent(objective, R_MIN, R_MAX, progress=progress)

    if verbose:
        tqdm.write(
            f"Optimal retention {result.x:.4f} after {result.nit} iterations "
            f"({result.nfev} evaluations)"
        )
    return result.x
