from datetime import datetime
from typing import Optional
from pydantic import Field

from storefront.schemas.base import CamelModel

# Base schema for Product shared properties
class ProductBase(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: int = Field(ge=0)  # In cents
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    brand: Optional[str] = None
    in_stock: bool = True
    stock_count: int = Field(0, ge=0)
    featured: bool = False

# Schema for creating a new Product
class ProductCreate(ProductBase):
    pass

# Schema for updating an existing Product
class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    brand: Optional[str] = None
    in_stock: Optional[bool] = None
    stock_count: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None

# Schema for Product in DB (returned to client)
class ProductInDB(ProductBase):
    id: int
    in_stock: Optional[bool] = None
    stock_count: Optional[int] = None
    featured: Optional[bool] = None
    created_at: Optional[datetime] = None
