from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import numpy.typing as npt

# Placeholder stability/difficulty for slots that were never learned.
UNLEARNED = 1e-10
# Anything above this counts as learned at least once.
LEARNED_THRESHOLD = 1e-9


class CardStatus(IntEnum):
    """Per-day status of a deck slot, evaluated once per simulated day."""

    NOT_DUE = 0
    REVIEW = 1
    LEARN = 2


@dataclass(frozen=True)
class Card:
    """A pre-existing card used to seed a deck. Days are relative to day 0."""

    difficulty: float
    stability: float
    last_date: float
    due: float


class Deck:
    def __init__(
        self,
        deck_size: int,
        learn_span: int,
        existing_cards: Sequence[Card] | None = None,
    ) -> None:
        """
        Maintains deck state as parallel NumPy columns.
        Index order doubles as admission priority. Unseeded slots are due on
        the final simulated day, which marks them as never scheduled.
        """
        self.learn_span = learn_span
        self.difficulty = np.full(deck_size, UNLEARNED, dtype=np.float64)
        self.stability = np.full(deck_size, UNLEARNED, dtype=np.float64)
        self.last_date = np.zeros(deck_size, dtype=np.float64)
        self.due = np.full(deck_size, float(learn_span), dtype=np.float64)
        self.interval = np.zeros(deck_size, dtype=np.float64)

        if existing_cards:
            self.seed_cards(existing_cards)

    def seed_cards(self, cards: Sequence[Card]) -> None:
        n = len(cards)
        if n > len(self):
            raise ValueError(
                f"Cannot seed {n} existing cards into a deck of size {len(self)}"
            )
        self.difficulty[:n] = [c.difficulty for c in cards]
        self.stability[:n] = [c.stability for c in cards]
        self.last_date[:n] = [c.last_date for c in cards]
        self.due[:n] = [c.due for c in cards]

    def __len__(self) -> int:
        return len(self.stability)

    @property
    def has_learned(self) -> npt.NDArray[np.bool_]:
        return self.stability > LEARNED_THRESHOLD

    def status(self, today: int) -> npt.NDArray[np.int8]:
        """Classifies every slot for ``today``; REVIEW wins over LEARN."""
        status = np.full(len(self), CardStatus.NOT_DUE, dtype=np.int8)
        # A learned card scheduled exactly on the horizon is not a new card
        status[(self.due == self.learn_span) & ~self.has_learned] = CardStatus.LEARN
        status[self.due <= today] = CardStatus.REVIEW
        return status
