"""
Storage categories and the subcategory to category mapping.
"""
from enum import Enum
from typing import Dict, Union

from inventory_tracker.core.exceptions import UnknownSubcategoryError


class Category(str, Enum):
    COOLER = "cooler"
    FREEZER = "freezer"
    DRY = "dry"
    CANNED = "canned"
    OTHER = "other"


class Subcategory(str, Enum):
    FRUIT = "fruit"
    VEGETABLES = "vegetables"
    JUICES = "juices"
    DAIRY = "dairy"
    MEATS = "meats"
    COOKED_MEATS = "cooked meats"
    FROZEN_VEGETABLES = "frozen vegetables"
    BREAD = "bread"
    DESSERTS = "desserts"
    SOUPS = "soups"
    DRESSINGS = "dressings"
    DRY = "dry"
    CANNED = "canned"
    OTHER = "other"


SUBCATEGORY_TO_CATEGORY: Dict[str, Category] = {
    "fruit": Category.COOLER,
    "vegetables": Category.COOLER,
    "juices": Category.COOLER,
    "dairy": Category.COOLER,
    "meats": Category.FREEZER,
    "cooked meats": Category.FREEZER,
    "frozen vegetables": Category.FREEZER,
    "bread": Category.FREEZER,
    "desserts": Category.FREEZER,
    "soups": Category.FREEZER,
    "dressings": Category.FREEZER,
    "dry": Category.DRY,
    "canned": Category.CANNED,
    "other": Category.OTHER,
}


def main_category_of(subcategory: Union[Subcategory, str]) -> Category:
    """
    Map a subcategory to the category it belongs to.

    Args:
        subcategory: Subcategory enum member or its string value

    Returns:
        The owning category

    Raises:
        UnknownSubcategoryError: If the subcategory is not part of the known set
    """
    key = subcategory.value if isinstance(subcategory, Subcategory) else subcategory
    try:
        return SUBCATEGORY_TO_CATEGORY[key]
    except (KeyError, TypeError):
        raise UnknownSubcategoryError(str(subcategory))
