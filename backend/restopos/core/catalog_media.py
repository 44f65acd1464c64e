"""Category type to image lookup."""

from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from restopos.core.config import settings


class CategoryType(str, Enum):
    FOOD = "FOOD"
    BEVERAGE = "BEVERAGE"
    COMBO = "COMBO"
    DESSERT = "DESSERT"
    SNACK = "SNACK"
    ALCOHOL = "ALCOHOL"
    NON_ALCOHOLIC = "NON_ALCOHOLIC"
    SPECIAL = "SPECIAL"
    SEASONAL = "SEASONAL"
    CUSTOM = "CUSTOM"
    ADDON = "ADDON"
    INGREDIENT = "INGREDIENT"
    SERVICE = "SERVICE"


@lru_cache
def get_category_images() -> Mapping[CategoryType, str]:
    """Image path per category type, built once from the configured base URL."""
    base = settings.category_image_base_url.rstrip("/")
    return MappingProxyType({
        category_type: f"{base}/{category_type.value.lower().replace('_', '-')}.png"
        for category_type in CategoryType
    })


def image_for(category_type: CategoryType, images: Mapping[CategoryType, str]) -> str:
    """Resolve the image for a category type, falling back to the CUSTOM image."""
    return images.get(category_type, images[CategoryType.CUSTOM])
