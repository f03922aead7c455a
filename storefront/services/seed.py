"""
Sample catalog and role accounts for a fresh database.

Run directly to seed the configured database:

    python -m storefront.services.seed
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.core.security import hash_password
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user import User, UserRole

logger = logging.getLogger(__name__)

CATEGORIES: List[Dict[str, Any]] = [
    {
        "name": "Sunglasses",
        "description": "Stylish sunglasses for all occasions",
        "image_url": "https://images.unsplash.com/photo-1572635196237-14b3f281503f?w=800&h=533&fit=crop",
    },
    {
        "name": "Optical Frames",
        "description": "Prescription eyeglasses with various frame styles",
        "image_url": "https://images.unsplash.com/photo-1574258495973-f010dfbb5371?w=800&h=533&fit=crop",
    },
    {
        "name": "Blue Light Glasses",
        "description": "Protective eyewear to filter blue light from digital screens",
        "image_url": "https://images.unsplash.com/photo-1591076482161-42ce6da69f67?w=800&h=533&fit=crop",
    },
]

# Prices in cents; "category" refers to CATEGORIES by name
PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "Elegant Black Frame",
        "description": "A sleek black frame that complements any face shape",
        "price": 14999,
        "category": "Optical Frames",
        "stock_count": 50,
        "featured": True,
    },
    {
        "name": "Crystal Clear Round",
        "description": "Transparent frame glasses with round lenses for a vintage look",
        "price": 12999,
        "category": "Optical Frames",
        "stock_count": 35,
        "featured": True,
    },
    {
        "name": "Gold Aviator Sunglasses",
        "description": "Modern sunglasses with gold frame and dark lenses",
        "price": 17999,
        "category": "Sunglasses",
        "stock_count": 25,
        "featured": True,
    },
    {
        "name": "Purple Cat-Eye Classic",
        "description": "Cat-eye style glasses with purple accents",
        "price": 15999,
        "category": "Optical Frames",
        "stock_count": 15,
        "featured": True,
    },
    {
        "name": "Digital Comfort Blue Light",
        "description": "Computer glasses to reduce eye strain during screen time",
        "price": 13999,
        "category": "Blue Light Glasses",
        "stock_count": 40,
        "featured": False,
    },
    {
        "name": "Modern Polarized Shades",
        "description": "Premium polarized sunglasses for outdoor activities",
        "price": 18999,
        "category": "Sunglasses",
        "stock_count": 30,
        "featured": False,
    },
]

USERS: List[Dict[str, Any]] = [
    {
        "username": "admin",
        "email": "admin@cleopatraeyewear.com",
        "password": "admin123",
        "first_name": "Admin",
        "last_name": "User",
        "role": UserRole.ADMIN,
    },
    {
        "username": "staff",
        "email": "staff@cleopatraeyewear.com",
        "password": "staff123",
        "first_name": "Staff",
        "last_name": "Member",
        "role": UserRole.STAFF,
    },
    {
        "username": "customer",
        "email": "customer@example.com",
        "password": "customer123",
        "first_name": "John",
        "last_name": "Doe",
        "role": UserRole.CUSTOMER,
    },
]


def seed_database(db: Session) -> bool:
    """Insert sample data unless the database already has users. Returns True if seeded."""
    if db.query(User).first():
        logger.info("Database already has users, skipping seed")
        return False

    categories = {}
    for data in CATEGORIES:
        category = Category(**data)
        db.add(category)
        categories[category.name] = category
    db.flush()

    for data in PRODUCTS:
        data = dict(data)
        category = categories[data.pop("category")]
        db.add(Product(category_id=category.id, brand="Cleopatra", in_stock=True, **data))

    for data in USERS:
        data = dict(data)
        password = data.pop("password")
        db.add(User(password_hash=hash_password(password), **data))

    db.commit()
    logger.info(
        f"Seeded {len(CATEGORIES)} categories, {len(PRODUCTS)} products and {len(USERS)} users"
    )
    return True


if __name__ == "__main__":
    from storefront.database.base import Base
    from storefront.database.session import SessionLocal, engine

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_database(session)
    finally:
        session.close()
