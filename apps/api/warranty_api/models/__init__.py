"""
SQLAlchemy models for the warranty public access API.
"""
# Store records read by the warranty services
from warranty_api.models.customer import Customer
from warranty_api.models.stock_item import StockItem
from warranty_api.models.sale import Sale, SaleItem
from warranty_api.models.business_profile import BusinessProfile
from warranty_api.models.user_profile import UserProfile

# Public warranty tokens
from warranty_api.models.warranty_public_token import WarrantyPublicToken


__all__ = [
    # Store
    "Customer",
    "StockItem",
    "Sale",
    "SaleItem",
    "BusinessProfile",
    "UserProfile",
    # Public warranty tokens
    "WarrantyPublicToken",
]
