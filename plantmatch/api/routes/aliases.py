"""
Alias table endpoints.

Aliases can be added while match requests are in flight; readers keep
using the snapshot they started with.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query

from plantmatch.core.dependencies import get_alias_table
from plantmatch.matching.alias_table import AliasTable
from plantmatch.models.schemas import (
    AliasRequest,
    AliasEntryResponse,
    AliasTableResponse,
    ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aliases", tags=["Aliases"])


@router.get("", response_model=AliasTableResponse, summary="List aliases")
async def list_aliases(alias_table: AliasTable = Depends(get_alias_table)) -> AliasTableResponse:
    """Current alias table: canonical name -> sorted synonyms."""
    aliases = alias_table.to_dict()
    return AliasTableResponse(count=len(aliases), aliases=aliases)


@router.post(
    "",
    response_model=AliasEntryResponse,
    responses={400: {"model": ErrorResponse, "description": "Malformed alias entry"}},
    summary="Add aliases",
)
async def add_aliases(
    request: AliasRequest,
    alias_table: AliasTable = Depends(get_alias_table),
) -> AliasEntryResponse:
    """
    Add synonyms to an alias entry.

    Existing synonyms are kept; posting the same synonyms again is a no-op.
    """
    try:
        entry = alias_table.add_aliases(request.canonical_name, request.synonyms)
    except ValueError as e:
        logger.warning(f"Rejected alias update: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return AliasEntryResponse(**entry.to_dict())


@router.get("/resolve", summary="Resolve a name to alias entries")
async def resolve_alias(
    name: str = Query(..., min_length=1, description="Plant name to look up"),
    alias_table: AliasTable = Depends(get_alias_table),
) -> dict:
    """Canonical names whose alias entry contains the given name."""
    return {"name": name, "canonicalNames": alias_table.resolve(name)}
