"""Tests for recipe lookup by menu item and variation."""

from restopos.core.units import RecipeUnit
from restopos.services.recipe_resolver import RecipeResolver


def test_default_recipe_applies_without_variation(db_session, tomato_recipe, menu_item):
    recipe = RecipeResolver(db_session).resolve(menu_item.id)
    assert recipe.id == tomato_recipe.id


def test_variation_falls_back_to_default(db_session, tomato_recipe, menu_item, large_variation):
    recipe = RecipeResolver(db_session).resolve(menu_item.id, large_variation.id)
    assert recipe.id == tomato_recipe.id


def test_exact_variation_wins(db_session, tomato_recipe, menu_item, large_variation, tomato, make_recipe):
    large = make_recipe(menu_item, [(tomato, "0.35", RecipeUnit.KG)], variation_id=large_variation.id)

    resolver = RecipeResolver(db_session)

    assert resolver.resolve(menu_item.id, large_variation.id).id == large.id
    assert resolver.resolve(menu_item.id, None).id == tomato_recipe.id


def test_no_recipe_is_not_an_error(db_session, second_menu_item):
    assert RecipeResolver(db_session).resolve(second_menu_item.id, 99) is None


def test_retired_recipe_is_ignored(db_session, tomato_recipe, menu_item):
    tomato_recipe.retire()
    db_session.commit()
    assert RecipeResolver(db_session).resolve(menu_item.id) is None


def test_find_duplicate(db_session, tomato_recipe, menu_item, large_variation):
    resolver = RecipeResolver(db_session)

    assert resolver.find_duplicate(menu_item.id, None).id == tomato_recipe.id
    assert resolver.find_duplicate(menu_item.id, None, exclude_id=tomato_recipe.id) is None
    assert resolver.find_duplicate(menu_item.id, large_variation.id) is None
