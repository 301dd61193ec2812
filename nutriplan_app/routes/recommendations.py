"""Recommendation-related API endpoints."""
import logging

from fastapi import APIRouter, Depends

from ..schemas.models import RankingResult
from ..schemas.schemas import RecommendationRequest
from ..services.planning import PlanningService
from .deps import get_planner

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RankingResult)
def recommend(payload: RecommendationRequest, planner: PlanningService = Depends(get_planner)):
    """Rank knowledge items for a subject profile."""
    result = planner.recommend(
        payload.profile,
        payload.context,
        category=payload.category,
        meal_type=payload.meal_type,
        top_n=payload.top_n,
        require_in_season=payload.require_in_season,
    )
    logger.info("Recommendations: %d returned, %d excluded",
                len(result.recommendations), len(result.excluded))
    return result
