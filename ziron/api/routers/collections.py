"""
Collections Router.

- GET    /api/v1/collections/{slug}
- DELETE /api/v1/collections/{collection_id}
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..dependencies import Cache, DbSession, Monitor
from ..schemas import CollectionDeleteResponse, CollectionResponse
from ...models.base import isoformat_utc
from ...services import collections as collection_service

router = APIRouter(tags=["Collections"], responses={404: {"description": "Collection not found"}})


@router.get("/collections/{slug}", response_model=CollectionResponse, summary="Get collection by slug")
async def get_collection(slug: str, db: DbSession, cache: Cache, monitor: Monitor):
    data = await collection_service.get_collection_by_slug(db, slug, cache=cache, monitor=monitor)
    if data is None:
        return JSONResponse(status_code=404, content={"error": "Collection not found"})
    return CollectionResponse(**data)


@router.delete(
    "/collections/{collection_id}",
    response_model=CollectionDeleteResponse,
    summary="Soft-delete a collection",
    description="The row is purged by the retention sweep once the retention window has passed.",
)
async def delete_collection(collection_id: str, db: DbSession, cache: Cache):
    collection = await collection_service.soft_delete_collection(db, collection_id, cache=cache)
    if collection is None:
        return JSONResponse(status_code=404, content={"error": "Collection not found"})
    return CollectionDeleteResponse(id=collection.id, deletedAt=isoformat_utc(collection.deleted_at))
