"""
Exception types for the league engine.
"""


class LeagueError(Exception):
    """Base class for league engine errors."""


class MissingCompetitorError(LeagueError, KeyError):
    """
    A tracked competitor is expected in a registry, roster or snapshot but is absent.

    Downstream rank assignment cannot proceed without it, so this is raised
    instead of degrading gracefully.
    """

    def __init__(self, competitor_id: str, where: str = "registry"):
        self.competitor_id = competitor_id
        self.where = where
        super().__init__(f"Competitor '{competitor_id}' missing from {where}")

    def __str__(self) -> str:
        return self.args[0]
