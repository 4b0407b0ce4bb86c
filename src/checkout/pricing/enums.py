from enum import Enum


class DiscountType(Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class DiscountScope(Enum):
    ALL = "all"
    CATEGORIES = "categories"
    PRODUCTS = "products"
