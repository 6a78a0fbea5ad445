from typing import Optional

from pydantic import BaseModel


class CollectionResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    slug: str
    label: Optional[str] = None
    sortOrder: Optional[int] = 0
    createdAt: str
    updatedAt: str
    deletedAt: Optional[str] = None


class CollectionDeleteResponse(BaseModel):
    id: str
    deletedAt: str
