"""Recipe lookup for sold menu items."""

import logging
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from restopos.models.recipe import Recipe

logger = logging.getLogger(__name__)


class RecipeResolver:
    """Finds the recipe that applies to a (menu item, variation) sale.

    A recipe written for the exact variation wins; otherwise the menu item's
    default recipe (no variation) applies. No recipe at all means the item
    has no tracked ingredients.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self, menu_item_id: int):
        return (
            self.db.query(Recipe)
            .options(selectinload(Recipe.ingredients))
            .filter(Recipe.menu_item_id == menu_item_id, Recipe.active())
        )

    def resolve(self, menu_item_id: int, variation_id: Optional[int] = None) -> Optional[Recipe]:
        if variation_id is not None:
            recipe = (
                self._query(menu_item_id)
                .filter(Recipe.variation_id == variation_id)
                .order_by(Recipe.id)
                .first()
            )
            if recipe:
                return recipe

        recipe = (
            self._query(menu_item_id)
            .filter(Recipe.variation_id.is_(None))
            .order_by(Recipe.id)
            .first()
        )
        if recipe is None:
            logger.debug(
                f"No recipe for menu item {menu_item_id} (variation {variation_id}); "
                f"nothing to deduct"
            )
        return recipe

    def find_duplicate(
        self,
        menu_item_id: int,
        variation_id: Optional[int],
        exclude_id: Optional[int] = None,
    ) -> Optional[Recipe]:
        """Another active recipe already bound to exactly this (menu item, variation)."""
        query = self._query(menu_item_id)
        if variation_id is None:
            query = query.filter(Recipe.variation_id.is_(None))
        else:
            query = query.filter(Recipe.variation_id == variation_id)
        if exclude_id is not None:
            query = query.filter(Recipe.id != exclude_id)
        return query.first()
