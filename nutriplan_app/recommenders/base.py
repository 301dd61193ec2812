"""Base recommender class for common functionality."""
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from nutriplan_app.schemas.models import (
    CompatibilityScore,
    KnowledgeItem,
    RankingResult,
    ScoringContext,
    SubjectProfile,
)


class BaseRecommender(ABC):
    def __init__(self, knowledge_base):
        self.knowledge_base = knowledge_base

    @abstractmethod
    def candidates(self, profile: SubjectProfile, context: ScoringContext, **filters) -> Iterable[KnowledgeItem]:
        """Default candidate pool for a request."""
        pass

    @abstractmethod
    def predict_scores(self, profile: SubjectProfile, items: List[KnowledgeItem],
                       context: ScoringContext) -> List[CompatibilityScore]:
        """Score items, one result per item in input order."""
        pass

    @abstractmethod
    def generate_recommendations(self, profile: SubjectProfile, context: ScoringContext,
                                 top_k: Optional[int] = None, **filters) -> RankingResult:
        """Generate recommendations for a subject."""
        pass
