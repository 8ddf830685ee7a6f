from collections.abc import Sequence
from typing import Any

import numpy as np
from tqdm import tqdm

from .deck import Card, CardStatus, Deck
from .fsrs_engine import (
    forget_difficulty,
    init_difficulty,
    init_stability,
    next_difficulty,
    next_interval,
    power_forgetting_curve,
    stability_after_failure,
    stability_after_success,
)
from .simulation_config import FSRSParameters, SimulationResult, SimulatorConfig
from .utils import resolve_parameters

DEFAULT_SEED = 42

FIRST_RATING_CHOICES = np.array([1, 2, 3, 4], dtype=np.int64)
REVIEW_RATING_CHOICES = np.array([2, 3, 4], dtype=np.int64)

__all__ = [
    "simulate",
    "simulate_day",
    "DEFAULT_SEED",
]


def simulate_day(
    deck: Deck,
    config: SimulatorConfig,
    params: FSRSParameters,
    desired_retention: float,
    today: int,
    rng: np.random.Generator,
) -> tuple[float, int, int, float]:
    """
    Advances the deck by one day in place.
    Returns (memorized, review_count, learn_count, cost) for the day.
    """
    n = len(deck)
    old_stability = deck.stability
    old_difficulty = deck.difficulty

    # Retrievability only exists for cards learned at least once
    has_learned = deck.has_learned
    retrievability = np.zeros(n, dtype=np.float64)
    retrievability[has_learned] = power_forgetting_curve(
        today - deck.last_date[has_learned], old_stability[has_learned]
    )

    status = deck.status(today)
    need_review = status == CardStatus.REVIEW
    need_learn = status == CardStatus.LEARN

    # One uniform draw per due card, in index order
    rand = np.zeros(n, dtype=np.float64)
    rand[need_review] = rng.random(int(np.count_nonzero(need_review)))
    forget = need_review & (rand > retrievability)
    recall = need_review & ~forget

    ratings = np.zeros(n, dtype=np.int64)
    ratings[recall] = rng.choice(
        REVIEW_RATING_CHOICES,
        size=int(np.count_nonzero(recall)),
        p=config.review_rating_prob,
    )

    cost = np.zeros(n, dtype=np.float64)
    cost[forget] = config.forget_cost * config.loss_aversion
    cost[recall] = np.asarray(config.recall_costs)[ratings[recall] - 2]

    # Greedy admission in index order: cumulative cost and count caps
    cum_cost = np.cumsum(cost)
    true_review = (
        need_review
        & (cum_cost <= config.max_cost_perday)
        & (np.cumsum(need_review) <= config.review_limit)
    )

    # Learns share the day's cost pool, stacked on top of every review cost
    cost[need_learn] = config.learn_cost
    cum_cost = np.cumsum(cost)
    true_learn = (
        need_learn
        & (cum_cost <= config.max_cost_perday)
        & (np.cumsum(need_learn) <= config.learn_limit)
    )
    ratings[true_learn] = rng.choice(
        FIRST_RATING_CHOICES,
        size=int(np.count_nonzero(true_learn)),
        p=config.first_rating_prob,
    )

    new_stability = old_stability.copy()
    new_difficulty = old_difficulty.copy()

    failed = true_review & forget
    new_stability[failed] = stability_after_failure(
        old_stability[failed], retrievability[failed], old_difficulty[failed], params
    )
    new_difficulty[failed] = forget_difficulty(old_difficulty[failed], params)

    passed = true_review & recall
    new_stability[passed] = stability_after_success(
        old_stability[passed],
        retrievability[passed],
        old_difficulty[passed],
        ratings[passed],
        params,
    )
    new_difficulty[passed] = next_difficulty(
        old_difficulty[passed], ratings[passed], params
    )

    new_stability[true_learn] = init_stability(ratings[true_learn], params)
    new_difficulty[true_learn] = init_difficulty(ratings[true_learn], params)

    admitted = true_review | true_learn
    new_interval = next_interval(
        new_stability[admitted], desired_retention, config.max_ivl
    )
    deck.stability = new_stability
    deck.difficulty = new_difficulty
    deck.last_date[admitted] = today
    deck.interval[admitted] = new_interval
    deck.due[admitted] = today + new_interval

    return (
        float(retrievability.sum()),
        int(np.count_nonzero(true_review)),
        int(np.count_nonzero(true_learn)),
        float(cost[admitted].sum()),
    )


def simulate(
    config: SimulatorConfig,
    parameters: Sequence[float],
    desired_retention: float,
    seed: int | None = None,
    existing_cards: Sequence[Card] | None = None,
    verbose: bool = False,
    tqdm_pos: int = 0,
) -> SimulationResult:
    """
    Simulates config.learn_span days of a deck scheduled at desired_retention.
    The same seed and inputs always give identical per-day sequences.
    """
    params = resolve_parameters(parameters)
    if config.deck_size == 0 or config.learn_span == 0:
        return SimulationResult.empty(0)

    rng = np.random.default_rng(DEFAULT_SEED if seed is None else seed)
    deck = Deck(config.deck_size, config.learn_span, existing_cards)
    result = SimulationResult.empty(config.learn_span)

    days: Any = tqdm(
        range(config.learn_span),
        desc="Simulating",
        position=tqdm_pos,
        leave=False,
        disable=not verbose,
    )
    for today in days:
        memorized, n_review, n_learn, cost = simulate_day(
            deck, config, params, desired_retention, today, rng
        )
        result.memorized_cnt_per_day[today] = memorized
        result.review_cnt_per_day[today] = n_review
        result.learn_cnt_per_day[today] = n_learn
        result.cost_per_day[today] = cost

    return result
