"""Retrieval API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from knowledge_cache.api.dependencies import get_retrieval_service
from knowledge_cache.models.dto import PassageResult, RetrieveRequest, RetrieveResponse
from knowledge_cache.retrieval.context import build_grounding_context
from knowledge_cache.retrieval.service import RetrievalService

router = APIRouter()


@router.post("/retrieve", response_model=RetrieveResponse, summary="Retrieve grounding passages")
async def retrieve(
    request: RetrieveRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> RetrieveResponse:
    passages = await service.retrieve(
        request.query,
        max_results=request.max_results,
        sources=request.sources,
    )
    return RetrieveResponse(
        results=[PassageResult.from_passage(passage) for passage in passages],
        context=build_grounding_context(passages),
    )
