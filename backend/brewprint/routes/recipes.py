"""
Brewprint Backend — Recipe Route Handlers
==========================================

What:  CRUD, branching, result recording and lifecycle endpoints for recipes.
How:   Extracts path/body/query values, delegates to RecipeService, returns JSON.
Who:   Called by the mobile client's brewprint screens.

Endpoint Map:
    POST   /api/recipes                  create (v1, experimenting)
    GET    /api/recipes?status=&method=&min_rating=&q=
                                         list, newest first (best rated first with min_rating)
    GET    /api/recipes/{id}             detail
    PATCH  /api/recipes/{id}             edit authorable fields
    DELETE /api/recipes/{id}             delete (children keep a dangling parent_id)
    POST   /api/recipes/{id}/branch      new iteration from this recipe
    POST   /api/recipes/{id}/results     record a brew result (may promote to final)
    POST   /api/recipes/{id}/final       mark final
    POST   /api/recipes/{id}/archive     archive
    GET    /api/recipes/{id}/chain       root + direct children
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from brewprint.dependencies import get_owner_id, get_record_store
from brewprint.schemas.common import ErrorResponse
from brewprint.schemas.recipe import (
    BrewMethod,
    BrewObservation,
    RecipeCreate,
    RecipeOverrides,
    RecipeResponse,
    RecipeStatus,
    RecipeUpdate,
)
from brewprint.services.recipe_service import recipe_service
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/recipes", tags=["Recipes"])

NOT_FOUND = {404: {"description": "Recipe not found", "model": ErrorResponse}}


@router.post(
    "",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a recipe",
)
async def create_recipe(
    data: RecipeCreate,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    created = await recipe_service.create_recipe(store, owner_id, data)
    return RecipeResponse.model_validate(created)


@router.get(
    "",
    response_model=List[RecipeResponse],
    summary="List recipes",
    description=(
        "Newest first. Filters combine: lifecycle status, brew method, minimum "
        "rating (best rated first, unrated recipes excluded) and a text search "
        "over name and description."
    ),
)
async def list_recipes(
    response: Response,
    status_filter: Optional[RecipeStatus] = Query(default=None, alias="status"),
    method: Optional[BrewMethod] = Query(default=None),
    min_rating: Optional[int] = Query(default=None, ge=1, le=5),
    q: Optional[str] = Query(default=None, max_length=100, description="Search name and description"),
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> List[RecipeResponse]:
    recipes = await recipe_service.list_recipes(
        store, owner_id, status=status_filter, method=method, min_rating=min_rating, search=q,
    )
    response.headers["X-Total-Count"] = str(len(recipes))
    return [RecipeResponse.model_validate(recipe) for recipe in recipes]


@router.get(
    "/{recipe_id}",
    response_model=RecipeResponse,
    responses=NOT_FOUND,
    summary="Get a recipe",
)
async def get_recipe(
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    recipe = await recipe_service.get_recipe(store, owner_id, recipe_id)
    return RecipeResponse.model_validate(recipe)


@router.patch(
    "/{recipe_id}",
    response_model=RecipeResponse,
    responses={
        400: {"description": "Required field set to null", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Edit a recipe",
    description=(
        "Only fields present in the body change. Status, version and parent "
        "have their own endpoints."
    ),
)
async def update_recipe(
    recipe_id: str,
    changes: RecipeUpdate,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    updated = await recipe_service.update_recipe(store, owner_id, recipe_id, changes)
    return RecipeResponse.model_validate(updated)


@router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
    summary="Delete a recipe",
    description=(
        "Removes the recipe's folder and tag assignments. Branches of this "
        "recipe keep their parent_id."
    ),
)
async def delete_recipe(
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Response:
    await recipe_service.delete_recipe(store, owner_id, recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{recipe_id}/branch",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Branch a new iteration",
    description=(
        "Creates a child recipe with the next version label and status 'experimenting'. "
        "Fields present in the body override the parent's values."
    ),
)
async def branch_recipe(
    recipe_id: str,
    overrides: Optional[RecipeOverrides] = Body(default=None),
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    created = await recipe_service.branch_recipe(store, owner_id, recipe_id, overrides)
    return RecipeResponse.model_validate(created)


@router.post(
    "/{recipe_id}/results",
    response_model=RecipeResponse,
    responses={
        400: {"description": "Rating outside 1-5", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Record a brew result",
    description="Rating 4-5 marks the recipe final, 1-3 puts it back to experimenting.",
)
async def record_result(
    recipe_id: str,
    observation: BrewObservation,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    updated = await recipe_service.record_brew_result(store, owner_id, recipe_id, observation)
    return RecipeResponse.model_validate(updated)


@router.post(
    "/{recipe_id}/final",
    response_model=RecipeResponse,
    responses=NOT_FOUND,
    summary="Mark a recipe final",
)
async def mark_final(
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    updated = await recipe_service.mark_final(store, owner_id, recipe_id)
    return RecipeResponse.model_validate(updated)


@router.post(
    "/{recipe_id}/archive",
    response_model=RecipeResponse,
    responses=NOT_FOUND,
    summary="Archive a recipe",
)
async def archive_recipe(
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> RecipeResponse:
    updated = await recipe_service.archive_recipe(store, owner_id, recipe_id)
    return RecipeResponse.model_validate(updated)


@router.get(
    "/{recipe_id}/chain",
    response_model=List[RecipeResponse],
    responses=NOT_FOUND,
    summary="Get the experimentation chain",
    description="The recipe followed by its direct branches, oldest first. One level deep.",
)
async def get_chain(
    recipe_id: str,
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> List[RecipeResponse]:
    chain = await recipe_service.get_experimentation_chain(store, owner_id, recipe_id)
    return [RecipeResponse.model_validate(recipe) for recipe in chain]
