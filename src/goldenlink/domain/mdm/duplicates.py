"""Advisory duplicate detection between golden records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from goldenlink.domain.mdm.identifiers import IdentifierManager
    from goldenlink.domain.model import GoldenRecord

log = logging.getLogger(__name__)


@runtime_checkable
class SimilarityScorer(Protocol):
    """Demographic similarity between two golden records, in [0, 1]."""

    def score(self, a: GoldenRecord, b: GoldenRecord) -> float: ...


@dataclass(frozen=True, slots=True)
class DuplicateCandidate:
    golden: GoldenRecord
    other: GoldenRecord
    conflicting_eids: bool
    score: float | None = None

    @property
    def reason(self) -> str:
        if self.conflicting_eids:
            return "conflicting external EIDs"
        return f"similarity {self.score:.2f}"


class DuplicateDetector:
    def __init__(
        self,
        identifiers: IdentifierManager,
        *,
        scorer: SimilarityScorer | None = None,
        threshold: float = 0.85,
    ) -> None:
        self._identifiers = identifiers
        self._scorer = scorer
        self._threshold = threshold

    def flags_as_conflicting(self, a: GoldenRecord, b: GoldenRecord) -> bool:
        """True when both records carry an external EID and the two differ.

        Records without an external EID on either side are never flagged.
        """

        eid_a = self._identifiers.resolve_external_eid(a)
        eid_b = self._identifiers.resolve_external_eid(b)
        if eid_a is None or eid_b is None:
            return False
        return not self._identifiers.eids_equal(eid_a, eid_b)

    def review_candidates(
        self,
        golden: GoldenRecord,
        others: Iterable[GoldenRecord],
    ) -> list[DuplicateCandidate]:
        candidates: list[DuplicateCandidate] = []
        for other in others:
            if other.id == golden.id or not other.active:
                continue
            conflicting = self.flags_as_conflicting(golden, other)
            score = self._score(golden, other)
            if conflicting or (score is not None and score >= self._threshold):
                candidates.append(
                    DuplicateCandidate(
                        golden=golden,
                        other=other,
                        conflicting_eids=conflicting,
                        score=score,
                    )
                )
        log.debug("%d duplicate candidates for %s", len(candidates), golden.reference)
        return candidates

    def _score(self, a: GoldenRecord, b: GoldenRecord) -> float | None:
        if self._scorer is None:
            return None
        try:
            score = self._scorer.score(a, b)
        except Exception:
            log.exception("Similarity scorer failed for %s and %s", a.reference, b.reference)
            return None
        return min(max(score, 0.0), 1.0)

