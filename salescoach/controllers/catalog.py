"""Sales process and knowledge base endpoints."""

from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from salescoach.controllers.dependencies import OwnerDep, PipelineDep
from salescoach.domain.models import KnowledgeBase, SalesProcess

router = APIRouter(tags=["catalog"])


@router.get("/processes", response_model=List[SalesProcess])
async def list_processes(pipeline: PipelineDep) -> List[SalesProcess]:
    return await pipeline.catalog.list_processes()


@router.get("/processes/{process_id}", response_model=SalesProcess)
async def get_process(process_id: str, pipeline: PipelineDep) -> SalesProcess:
    process = await pipeline.catalog.get_process(process_id)
    if process is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sales process not found",
        )
    return process


@router.put("/processes/{process_id}", response_model=SalesProcess)
async def save_process(
    process_id: str,
    payload: SalesProcess,
    owner_id: OwnerDep,
    pipeline: PipelineDep,
) -> SalesProcess:
    if payload.id != process_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Process id does not match the URL",
        )
    return await pipeline.catalog.save_process(payload, owner_id)


@router.delete("/processes/{process_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_process(process_id: str, _owner_id: OwnerDep, pipeline: PipelineDep) -> Response:
    if not await pipeline.catalog.delete_process(process_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The default sales process cannot be deleted",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/knowledge-base", response_model=KnowledgeBase)
async def get_knowledge_base(pipeline: PipelineDep) -> KnowledgeBase:
    return await pipeline.catalog.get_knowledge_base()


@router.put("/knowledge-base", response_model=KnowledgeBase)
async def save_knowledge_base(
    payload: KnowledgeBase,
    owner_id: OwnerDep,
    pipeline: PipelineDep,
) -> KnowledgeBase:
    return await pipeline.catalog.save_knowledge_base(payload, owner_id)
