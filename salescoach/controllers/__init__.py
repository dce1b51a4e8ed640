"""FastAPI routers acting as controllers in the MVC architecture."""

from . import catalog, debug, leaderboard, queue, recordings

__all__ = ["catalog", "debug", "leaderboard", "queue", "recordings"]
