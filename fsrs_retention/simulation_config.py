import logging
import math
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import NamedTuple, TypeAlias

import numpy as np
import numpy.typing as npt

# Type for FSRS weight vector (17 parameters)
FSRSParameters: TypeAlias = tuple[float, ...]


def _normalize_prob(
    values: Sequence[float], key: str, expected_len: int
) -> tuple[float, ...]:
    if len(values) != expected_len:
        raise ValueError(f"{key} must have length {expected_len}")
    if any((not math.isfinite(v)) or v < 0 for v in values):
        raise ValueError(f"{key} contains invalid probabilities {tuple(values)}")
    total = float(sum(values))
    if total <= 0:
        raise ValueError(f"{key} sums to invalid value {total:.6f}")
    if abs(total - 1.0) > 1e-9:
        logging.warning("%s does not sum to 1 (%.6f); normalizing.", key, total)
        return tuple(float(v) / total for v in values)
    return tuple(float(v) for v in values)


@dataclass(frozen=True)
class SimulatorConfig:
    deck_size: int = 10000
    learn_span: int = 365
    max_cost_perday: float = 1800.0
    max_ivl: float = 36500.0
    # Costs of a recalled review rated Hard, Good, Easy
    recall_costs: tuple[float, float, float] = (14.0, 10.0, 6.0)
    forget_cost: float = 50.0
    learn_cost: float = 20.0
    # First rating Again, Hard, Good, Easy
    first_rating_prob: tuple[float, float, float, float] = (0.15, 0.2, 0.6, 0.05)
    # Review rating given recall: Hard, Good, Easy
    review_rating_prob: tuple[float, float, float] = (0.3, 0.6, 0.1)
    loss_aversion: float = 2.5
    learn_limit: int = sys.maxsize
    review_limit: int = sys.maxsize

    def __post_init__(self) -> None:
        if len(self.recall_costs) != 3:
            raise ValueError("recall_costs must have length 3")
        object.__setattr__(
            self, "recall_costs", tuple(float(c) for c in self.recall_costs)
        )
        object.__setattr__(
            self,
            "first_rating_prob",
            _normalize_prob(self.first_rating_prob, "first_rating_prob", 4),
        )
        object.__setattr__(
            self,
            "review_rating_prob",
            _normalize_prob(self.review_rating_prob, "review_rating_prob", 3),
        )


class SimulationResult(NamedTuple):
    """Per-day aggregates of one simulation run, each of length learn_span."""

    memorized_cnt_per_day: npt.NDArray[np.float64]
    review_cnt_per_day: npt.NDArray[np.int64]
    learn_cnt_per_day: npt.NDArray[np.int64]
    cost_per_day: npt.NDArray[np.float64]

    @classmethod
    def empty(cls, learn_span: int) -> "SimulationResult":
        return cls(
            np.zeros(learn_span, dtype=np.float64),
            np.zeros(learn_span, dtype=np.int64),
            np.zeros(learn_span, dtype=np.int64),
            np.zeros(learn_span, dtype=np.float64),
        )

    @property
    def total_cost(self) -> float:
        return float(np.sum(self.cost_per_day))

    @property
    def final_memorized(self) -> float:
        return float(self.memorized_cnt_per_day[-1])
