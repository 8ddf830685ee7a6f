from typing import Any, cast

import numpy as np

DECAY = -0.5
# 0.9 ** (1 / DECAY) - 1 == 19 / 81, so that R(t=S, S) == 0.9
FACTOR = 0.9 ** (1.0 / DECAY) - 1.0

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
S_MIN = 0.01
S_MAX = 36500.0


def power_forgetting_curve(
    elapsed_days: np.ndarray[Any, Any] | float,
    stabilities: np.ndarray[Any, Any] | float,
) -> np.ndarray[Any, Any]:
    """Vectorized recall probability using the FSRS v4.5 power curve."""
    t = np.asarray(elapsed_days, dtype=np.float64)
    s = np.asarray(stabilities, dtype=np.float64)
    return cast(
        np.ndarray[Any, Any], ((t / s) * FACTOR + 1.0) ** DECAY
    )


def init_stability(
    ratings: np.ndarray[Any, Any], params: tuple[float, ...]
) -> np.ndarray[Any, Any]:
    """Vectorized initial stability, looked up from w[0..4)."""
    # ratings are 1, 2, 3, 4 (Again, Hard, Good, Easy)
    params_arr = np.array(params, dtype=np.float64)
    return cast(
        np.ndarray[Any, Any],
        np.clip(params_arr[np.asarray(ratings) - 1], S_MIN, S_MAX),
    )


def init_difficulty(
    ratings: np.ndarray[Any, Any], params: tuple[float, ...]
) -> np.ndarray[Any, Any]:
    """Vectorized initial difficulty."""
    # D0(G) = w4 - w5 * (G - 3)
    d0 = params[4] - params[5] * (np.asarray(ratings, dtype=np.float64) - 3.0)
    return cast(
        np.ndarray[Any, Any],
        np.clip(d0, MIN_DIFFICULTY, MAX_DIFFICULTY).astype(np.float64),
    )


def next_difficulty(
    difficulties: np.ndarray[Any, Any],
    ratings: np.ndarray[Any, Any],
    params: tuple[float, ...],
) -> np.ndarray[Any, Any]:
    """Difficulty after a successful review, mean-reverted toward w4."""
    delta = difficulties - params[6] * (np.asarray(ratings, dtype=np.float64) - 3.0)
    next_d = params[7] * params[4] + (1.0 - params[7]) * delta
    return cast(
        np.ndarray[Any, Any],
        np.clip(next_d, MIN_DIFFICULTY, MAX_DIFFICULTY).astype(np.float64),
    )


def forget_difficulty(
    difficulties: np.ndarray[Any, Any], params: tuple[float, ...]
) -> np.ndarray[Any, Any]:
    """Difficulty after a lapse: bumped by two steps of w6."""
    return cast(
        np.ndarray[Any, Any],
        np.clip(difficulties + 2.0 * params[6], MIN_DIFFICULTY, MAX_DIFFICULTY),
    )


def stability_after_success(
    stabilities: np.ndarray[Any, Any],
    retrievabilities: np.ndarray[Any, Any],
    difficulties: np.ndarray[Any, Any],
    ratings: np.ndarray[Any, Any],
    params: tuple[float, ...],
) -> np.ndarray[Any, Any]:
    """Vectorized recall stability update."""
    # S' = S * [1 + exp(w8) * (11-D) * S^-w9 * (exp(w10 * (1-R)) - 1) * penalty * bonus]
    ratings = np.asarray(ratings)
    hard_penalty = np.where(ratings == 2, params[15], 1.0)  # Rating.Hard = 2
    easy_bonus = np.where(ratings == 4, params[16], 1.0)  # Rating.Easy = 4

    s_inc = (
        np.exp(params[8])
        * (11.0 - difficulties)
        * (stabilities ** -params[9])
        * (np.exp((1.0 - retrievabilities) * params[10]) - 1.0)
        * hard_penalty
        * easy_bonus
    )
    new_s = stabilities * (s_inc + 1.0)
    return cast(np.ndarray[Any, Any], np.clip(new_s, S_MIN, S_MAX))


def stability_after_failure(
    stabilities: np.ndarray[Any, Any],
    retrievabilities: np.ndarray[Any, Any],
    difficulties: np.ndarray[Any, Any],
    params: tuple[float, ...],
) -> np.ndarray[Any, Any]:
    """Vectorized lapse stability update, never above the prior stability."""
    # S'_f = w11 * D^-w12 * ((S+1)^w13 - 1) * exp(w14 * (1-R))
    s_long = (
        params[11]
        * (difficulties ** -params[12])
        * ((stabilities + 1.0) ** params[13] - 1.0)
        * np.exp((1.0 - retrievabilities) * params[14])
    )
    new_s = np.minimum(s_long, stabilities)
    return cast(np.ndarray[Any, Any], np.clip(new_s, S_MIN, S_MAX))


def next_interval(
    stabilities: np.ndarray[Any, Any],
    desired_retention: float,
    max_interval: float = S_MAX,
) -> np.ndarray[Any, Any]:
    """Vectorized next interval: the elapsed days at which R == desired_retention."""
    intervals = (
        np.asarray(stabilities, dtype=np.float64)
        / FACTOR
        * (desired_retention ** (1.0 / DECAY) - 1.0)
    )
    return cast(
        np.ndarray[Any, Any],
        np.clip(np.round(intervals), 1.0, max_interval).astype(np.float64),
    )
