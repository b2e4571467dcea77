"""Tag and category routes."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import admin_required
from ...database import get_db
from ...schemas.auth import IdentitySnapshot
from ...schemas.post import TaxonomyCreate, TaxonomyResponse
from ...services.blog import TaxonomyService

router = APIRouter(tags=["Taxonomy"])


def get_taxonomy_service(db: AsyncSession = Depends(get_db)) -> TaxonomyService:
    return TaxonomyService(db)


@router.get("/tags", response_model=List[TaxonomyResponse])
async def list_tags(taxonomy: TaxonomyService = Depends(get_taxonomy_service)):
    return [TaxonomyResponse.model_validate(tag) for tag in await taxonomy.list_tags()]


@router.post("/tags", response_model=TaxonomyResponse, status_code=201)
async def create_tag(
    tag_create: TaxonomyCreate,
    current_user: IdentitySnapshot = Depends(admin_required),
    taxonomy: TaxonomyService = Depends(get_taxonomy_service),
):
    return TaxonomyResponse.model_validate(await taxonomy.create_tag(tag_create))


@router.get("/categories", response_model=List[TaxonomyResponse])
async def list_categories(taxonomy: TaxonomyService = Depends(get_taxonomy_service)):
    return [
        TaxonomyResponse.model_validate(category)
        for category in await taxonomy.list_categories()
    ]


@router.post("/categories", response_model=TaxonomyResponse, status_code=201)
async def create_category(
    category_create: TaxonomyCreate,
    current_user: IdentitySnapshot = Depends(admin_required),
    taxonomy: TaxonomyService = Depends(get_taxonomy_service),
):
    return TaxonomyResponse.model_validate(await taxonomy.create_category(category_create))
