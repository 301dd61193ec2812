"""Shared route dependencies."""
from fastapi import Request

from ..services.planning import PlanningService


def get_planner(request: Request) -> PlanningService:
    return request.app.state.planner
