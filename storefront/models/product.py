from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from storefront.database.session import Base

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)  # In cents
    image_url = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    brand = Column(String, nullable=True, index=True)
    in_stock = Column(Boolean, default=True)
    stock_count = Column(Integer, default=0)
    featured = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=func.now())

    # Relationships
    category = relationship("Category", backref="products")
