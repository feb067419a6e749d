import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Set

from sentence_studio.logging_config import setup_logger
logger = setup_logger(__name__, "practice.log")

RECOMMENDATION_SIZE = 10
NEW_TARGET = 7
REINFORCE_TARGET = 3
REINFORCE_MIN_COUNT = 1
REINFORCE_MAX_COUNT = 3


class PracticeSelectionError(Exception):
    """Raised when any lookup behind a recommendation fails."""


@dataclass
class EligibleFilter:
    """
    Narrows the eligible set: shared or owned by user_id, with audio,
    in a category that is not deleted.
    """
    user_id: int
    limit: int
    include_ids: Optional[Set[int]] = None
    exclude_ids: Set[int] = field(default_factory=set)


class SentenceSource(Protocol):

    async def practice_counts(self, user_id: int) -> Dict[int, int]:
        ...

    async def find_eligible_sentences(self, criteria: EligibleFilter) -> List[dict]:
        """Return up to criteria.limit matching sentences in random order."""
        ...


async def select_candidates(user_id: int, source: SentenceSource, rng: random.Random = None) -> List[dict]:
    """
    Pick up to ten sentences for a practice session.

    Unpractised sentences fill most of the list, sentences practised one to
    three times are mixed in for reinforcement, and a random supplement tops
    the list up when either pool runs short. The result is shuffled, so only
    membership is biased, not position.
    """
    rng = rng or random.Random()

    try:
        counts = await source.practice_counts(user_id)
        practiced_ids = {sentence_id for sentence_id, count in counts.items() if count >= 1}
        reinforce_ids = {
            sentence_id for sentence_id, count in counts.items()
            if REINFORCE_MIN_COUNT <= count <= REINFORCE_MAX_COUNT
        }

        fresh = await source.find_eligible_sentences(
            EligibleFilter(user_id=user_id, limit=NEW_TARGET, exclude_ids=practiced_ids)
        )

        reinforce = []
        if reinforce_ids:
            reinforce = await source.find_eligible_sentences(
                EligibleFilter(user_id=user_id, limit=REINFORCE_TARGET, include_ids=reinforce_ids)
            )

        seen_ids: Set[int] = set()
        merged: List[dict] = []
        for row in fresh + reinforce:
            if row['id'] not in seen_ids:
                seen_ids.add(row['id'])
                merged.append(row)

        if len(merged) < RECOMMENDATION_SIZE:
            supplement = await source.find_eligible_sentences(
                EligibleFilter(
                    user_id=user_id,
                    limit=RECOMMENDATION_SIZE - len(merged),
                    exclude_ids=set(seen_ids),
                )
            )
            for row in supplement:
                if row['id'] not in seen_ids:
                    seen_ids.add(row['id'])
                    merged.append(row)

    except Exception as ex:
        logger.error(f"Failed to select practice candidates for user {user_id}: {ex}")
        raise PracticeSelectionError("Failed to fetch recommendation") from ex

    rng.shuffle(merged)
    return merged[:RECOMMENDATION_SIZE]
