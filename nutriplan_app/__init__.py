"""nutriplan_app package init: keep imports lightweight to avoid side-effects.

Modules should be imported explicitly from their full paths, e.g.
`from nutriplan_app.api import create_app` or `from nutriplan_app.services.planning import PlanningService`.
"""

__all__ = []
