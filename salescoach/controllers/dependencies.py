"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from salescoach.config.dependencies import CoachPipeline


def get_pipeline(request: Request) -> CoachPipeline:
    """Return the pipeline wired for this application instance."""

    pipeline: Optional[CoachPipeline] = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Recording pipeline is not ready",
        )
    return pipeline


async def get_owner_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-Id")] = None,
) -> str:
    """Resolve the acting user from the ``X-User-Id`` header."""

    owner_id = (x_user_id or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return owner_id


PipelineDep = Annotated[CoachPipeline, Depends(get_pipeline)]
OwnerDep = Annotated[str, Depends(get_owner_id)]


__all__ = ["get_owner_id", "get_pipeline", "OwnerDep", "PipelineDep"]
