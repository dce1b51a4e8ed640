"""Team leaderboard endpoints."""

from typing import List, Literal, Optional

from fastapi import APIRouter

from salescoach.config.dependencies import CoachPipeline
from salescoach.controllers.dependencies import OwnerDep, PipelineDep
from salescoach.domain.models import LeaderboardEntry
from salescoach.services.leaderboard import build_leaderboard, get_user_rank
from salescoach.views import RankResponse

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

TimeframeQuery = Literal["week", "month", "all"]


def _roster(pipeline: CoachPipeline) -> Optional[dict[str, str]]:
    return pipeline.settings.team_roster or None


@router.get("/", response_model=List[LeaderboardEntry])
async def leaderboard(pipeline: PipelineDep, timeframe: TimeframeQuery = "all") -> List[LeaderboardEntry]:
    return build_leaderboard(
        pipeline.recordings.cache,
        roster=_roster(pipeline),
        timeframe=timeframe,
    )


@router.get("/rank", response_model=RankResponse)
async def my_rank(owner_id: OwnerDep, pipeline: PipelineDep, timeframe: TimeframeQuery = "all") -> RankResponse:
    rank = get_user_rank(
        pipeline.recordings.cache,
        owner_id,
        roster=_roster(pipeline),
        timeframe=timeframe,
    )
    return RankResponse(user_id=owner_id, timeframe=timeframe, rank=rank)
