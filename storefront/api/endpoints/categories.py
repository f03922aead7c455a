import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.database.session import get_db
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user_session import UserSession
from storefront.schemas.category import CategoryCreate, CategoryInDB, CategoryUpdate
from storefront.api.endpoints.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )
    return category


@router.get("", response_model=List[CategoryInDB])
async def get_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.id).all()


@router.post("", response_model=CategoryInDB, status_code=status.HTTP_201_CREATED)
async def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Create a new category (admin only)."""
    db_category = Category(**category.model_dump())
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.get("/{category_id}", response_model=CategoryInDB)
async def get_category(category_id: int, db: Session = Depends(get_db)):
    return get_category_or_404(db, category_id)


@router.patch("/{category_id}", response_model=CategoryInDB)
async def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Update a category (admin only)."""
    db_category = get_category_or_404(db, category_id)

    update_data = category_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if key == "name" and value is None:
            continue
        setattr(db_category, key, value)

    db.commit()
    db.refresh(db_category)
    return db_category


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current: UserSession = Depends(require_admin)
):
    """Delete a category (admin only). Refused while any product references it."""
    db_category = get_category_or_404(db, category_id)

    in_use = db.query(Product).filter(Product.category_id == category_id).first()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete category with associated products"
        )

    db.delete(db_category)
    db.commit()

    logger.info(f"Category {category_id} deleted by user {current.user_id}")
    return {"detail": "Category deleted successfully"}
