from typing import Literal

from salescoach.domain.models import CamelModel


class RankResponse(CamelModel):
    user_id: str
    timeframe: Literal["week", "month", "all"]
    rank: int
