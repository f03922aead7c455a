from storefront.database.session import Base

# Import all models here so that Base has them registered
# The following imports are for SQLAlchemy to create the tables
from storefront.models.user import User
from storefront.models.user_session import UserSession
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.booking import Booking
from storefront.models.feedback import Feedback
