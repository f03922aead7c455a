import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from storefront.database.session import get_db
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user_session import UserSession
from storefront.schemas.product import ProductCreate, ProductUpdate, ProductInDB
from storefront.api.endpoints.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_NULL_FIELDS = ("name", "price", "in_stock", "stock_count", "featured")


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return product


def _ensure_category_exists(db: Session, category_id: Optional[int]):
    if category_id is None:
        return
    if not db.query(Category).filter(Category.id == category_id).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid category ID"
        )


@router.post("", response_model=ProductInDB, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Create a new product (admin only)."""
    _ensure_category_exists(db, product.category_id)

    db_product = Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)

    return db_product


@router.get("", response_model=List[ProductInDB])
async def get_products(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    featured: Optional[bool] = None,
    brand: Optional[str] = None,
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Get products, optionally filtered by category, featured flag, brand or stock."""
    query = db.query(Product)

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    if featured:
        query = query.filter(Product.featured.is_(True))

    if brand:
        query = query.filter(Product.brand == brand)

    if in_stock is not None:
        query = query.filter(Product.in_stock.is_(in_stock))

    products = query.order_by(Product.id).offset(skip).limit(limit).all()
    return products


@router.get("/search", response_model=List[ProductInDB])
async def search_products(
    query: str = Query(..., min_length=2),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Search for products by name or brand."""
    search_term = f"%{query}%"
    products = db.query(Product).filter(
        (Product.name.ilike(search_term)) | (Product.brand.ilike(search_term))
    ).order_by(Product.id).limit(limit).all()

    return products


@router.get("/{product_id}", response_model=ProductInDB)
async def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


@router.patch("/{product_id}", response_model=ProductInDB)
async def update_product(
    product_id: int,
    product_update: ProductUpdate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Update a product (admin only)."""
    update_data = product_update.model_dump(exclude_unset=True)
    _ensure_category_exists(db, update_data.get("category_id"))

    db_product = _get_product_or_404(db, product_id)

    for key, value in update_data.items():
        if key in NOT_NULL_FIELDS and value is None:
            continue
        setattr(db_product, key, value)

    db.commit()
    db.refresh(db_product)

    return db_product


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Delete a product (admin only)."""
    db_product = _get_product_or_404(db, product_id)

    db.delete(db_product)
    db.commit()

    logger.info(f"Product {product_id} deleted by user {current.user_id}")
    return {"detail": "Product deleted successfully"}
