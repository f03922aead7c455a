from typing import Optional
from pydantic import Field

from storefront.schemas.base import CamelModel

class CategoryBase(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None

class CategoryInDB(CategoryBase):
    id: int
