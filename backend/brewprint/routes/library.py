"""
Brewprint Backend — Library Route Handlers
===========================================

What:  Default selection for grinders, water profiles and folders, plus
       filing recipes into folders and tagging them.

Endpoint Map:
    POST   /api/library/{collection}/{id}/default             make default
    GET    /api/library/folders/{folder_id}/recipes           recipe ids in a folder
    PUT    /api/library/folders/{folder_id}/recipes/{id}      file a recipe
    DELETE /api/library/folders/{folder_id}/recipes/{id}      unfile a recipe
    GET    /api/library/recipes/{id}/tags                     tag names on a recipe
    PUT    /api/library/recipes/{id}/tags/{tag_name}          tag (creates the tag if new)
    DELETE /api/library/recipes/{id}/tags/{tag_name}          untag
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status

from brewprint.dependencies import get_owner_id, get_record_store
from brewprint.schemas.common import ErrorResponse
from brewprint.services.defaults_service import defaults_service
from brewprint.services.membership_service import membership_service
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/library", tags=["Library"])

NOT_FOUND = {404: {"description": "Folder or recipe not found", "model": ErrorResponse}}


@router.post(
    "/{collection}/{record_id}/default",
    responses={
        400: {"description": "Collection has no default selection", "model": ErrorResponse},
        404: {"description": "Record not found", "model": ErrorResponse},
    },
    summary="Make a record the default of its collection",
    description="Supported collections: grinders, water_profiles, folders.",
)
async def set_default(
    collection: str,
    record_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    return await defaults_service.set_default(store, collection, owner_id, record_id)


# ── Folder Membership ─────────────────────────────────────────────────────


@router.get(
    "/folders/{folder_id}/recipes",
    response_model=List[str],
    responses=NOT_FOUND,
    summary="List the recipes in a folder",
    description="Recipe ids, most recently filed first.",
)
async def list_folder_recipes(
    folder_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> List[str]:
    return await membership_service.list_folder_recipes(store, owner_id, folder_id)


@router.put(
    "/folders/{folder_id}/recipes/{recipe_id}",
    responses=NOT_FOUND,
    summary="File a recipe into a folder",
    description="Idempotent: filing a recipe twice returns the existing assignment.",
)
async def add_to_folder(
    folder_id: str,
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    return await membership_service.add_to_folder(store, owner_id, folder_id, recipe_id)


@router.delete(
    "/folders/{folder_id}/recipes/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a recipe from a folder",
)
async def remove_from_folder(
    folder_id: str,
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Response:
    await membership_service.remove_from_folder(store, owner_id, folder_id, recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Tags ──────────────────────────────────────────────────────────────────


@router.get(
    "/recipes/{recipe_id}/tags",
    response_model=List[str],
    responses=NOT_FOUND,
    summary="List a recipe's tags",
)
async def list_recipe_tags(
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> List[str]:
    return await membership_service.list_recipe_tags(store, owner_id, recipe_id)


@router.put(
    "/recipes/{recipe_id}/tags/{tag_name}",
    responses={
        400: {"description": "Blank or overlong tag name", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Tag a recipe",
    description="Creates the tag when the caller has none with this name.",
)
async def add_tag(
    recipe_id: str,
    tag_name: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    return await membership_service.add_tag(store, owner_id, recipe_id, tag_name)


@router.delete(
    "/recipes/{recipe_id}/tags/{tag_name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a tag from a recipe",
)
async def remove_tag(
    recipe_id: str,
    tag_name: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Response:
    await membership_service.remove_tag(store, owner_id, recipe_id, tag_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
