"""Tests for diet compatibility scoring and catalog filters."""

from decimal import Decimal

from nutricart.api.models import DietPlan, Product, Recipe, RecipeIngredient, UserProfile
from nutricart.compatibility import (
    FALLBACK_NAME,
    FALLBACK_SCORE,
    MAX_PLANS,
    MAX_RECIPES,
    MAX_SCORE,
    filter_products,
    is_recipe_compatible,
    link_ingredients_to_products,
    recipes_by_diet,
    recipes_by_ingredients,
    recommend,
    score_plan,
)


def _plan(pid, name, suitable_for=(), budget=""):
    return DietPlan(id=pid, name=name, suitable_for=list(suitable_for), budget=budget)


def _recipe(rid, tags=(), ingredients=()):
    return Recipe(
        id=rid,
        name=f"Recipe {rid}",
        diet_compatible=list(tags),
        ingredients=[RecipeIngredient(name=i) for i in ingredients],
    )


def test_keto_weight_loss_scenario():
    """Weight loss goal plus budget bracket scores 50+20+10."""
    profile = UserProfile.from_dict({
        "healthGoals": ["Weight Loss"],
        "dietaryRestrictions": ["Vegetarian"],
        "budget": "Budget-friendly (₹2000-4000/month)",
    })
    plan = _plan("1", "Keto Weight Loss Plan", ["weight-loss"], "low")

    result = recommend(profile, [plan])

    assert len(result.recommendations) == 1
    rec = result.recommendations[0]
    assert rec.score == 80
    assert rec.plan_id == "1"
    assert "Weight loss focused" in rec.features
    assert "Budget friendly" in rec.features
    assert "Vegetarian friendly" not in rec.features


def test_single_match_included_zero_match_excluded():
    """One matched goal clears the cutoff; no match does not."""
    profile = UserProfile(health_goals=["Heart Health"])
    one_match = _plan("a", "Mediterranean Plan")
    no_match = _plan("b", "Bulk Plan")

    assert score_plan(profile, one_match).score == 70
    assert score_plan(profile, no_match).score == 50

    result = recommend(profile, [no_match, one_match])
    assert [r.plan_id for r in result.recommendations] == ["a"]


def test_score_is_capped():
    """Scores never exceed the cap."""
    profile = UserProfile(
        health_goals=["weight-loss", "heart-health", "muscle-building"],
        dietary_restrictions=["vegetarian", "vegan", "gluten-free"],
        budget="premium",
    )
    plan = _plan(
        "x",
        "Keto Heart Protein Plan",
        ["vegetarian", "vegan", "gluten-free"],
        "premium",
    )
    rec = score_plan(profile, plan)
    assert rec.score == MAX_SCORE
    assert "Premium ingredients" in rec.features


def test_fallback_when_nothing_qualifies():
    """An empty result falls back to the balanced plan."""
    result = recommend(UserProfile(health_goals=["weight loss"]), [])
    assert len(result.recommendations) == 1
    assert result.recommendations[0].name == FALLBACK_NAME
    assert result.recommendations[0].score == FALLBACK_SCORE


def test_sorted_descending_with_stable_ties():
    """Plans rank by score and ties keep catalog order."""
    profile = UserProfile(
        health_goals=["weight loss"], dietary_restrictions=["vegan"]
    )
    plans = [
        _plan("t1", "Low Carb Plan"),
        _plan("top", "Vegan Keto", ["vegan"]),
        _plan("t2", "Keto Basics"),
        _plan("low", "Plain Vegan Plan"),
    ]
    result = recommend(profile, plans)

    assert [r.plan_id for r in result.recommendations] == ["top", "t1", "t2"]
    assert [r.score for r in result.recommendations] == [85, 70, 70]


def test_truncates_to_three_plans():
    """At most three plans are recommended."""
    profile = UserProfile(health_goals=["muscle building"])
    plans = [_plan(str(i), f"Protein Plan {i}") for i in range(6)]
    result = recommend(profile, plans)
    assert len(result.recommendations) == MAX_PLANS
    assert [r.plan_id for r in result.recommendations] == ["0", "1", "2"]


def test_recommend_is_idempotent():
    """Identical inputs give identical results."""
    profile = UserProfile(
        health_goals=["weight loss", "heart health"], budget="Premium"
    )
    plans = [
        _plan("1", "Keto", budget="high"),
        _plan("2", "DASH Diet"),
        _plan("3", "Mediterranean Keto"),
    ]
    recipes = [_recipe("r1"), _recipe("r2", ["vegan"])]

    first = recommend(profile, plans, recipes)
    second = recommend(profile, plans, recipes)

    assert [(r.plan_id, r.score) for r in first.recommendations] == [
        (r.plan_id, r.score) for r in second.recommendations
    ]
    assert [r.id for r in first.recipes] == [r.id for r in second.recipes]


def test_recipe_filter_for_vegetarian():
    """Vegetarian profiles skip recipes tagged without it."""
    profile = UserProfile(dietary_restrictions=["Vegetarian"])
    untagged = _recipe("u")
    veg = _recipe("v", ["vegetarian", "gluten-free"])
    meat = _recipe("m", ["keto"])

    assert is_recipe_compatible(profile, untagged)
    assert is_recipe_compatible(profile, veg)
    assert not is_recipe_compatible(profile, meat)

    result = recommend(profile, [], [meat, untagged, veg])
    assert [r.id for r in result.recipes] == ["u", "v"]


def test_recipe_filter_without_restrictions_keeps_all():
    """Without restrictions recipes are only truncated."""
    recipes = [_recipe(str(i), ["keto"]) for i in range(8)]
    result = recommend(UserProfile(), [], recipes)
    assert len(result.recipes) == MAX_RECIPES


def test_display_lists_plans_and_recipes():
    """The text display lists plans, scores and recipes."""
    profile = UserProfile(health_goals=["weight loss"])
    result = recommend(profile, [_plan("1", "Keto Plan")], [_recipe("r")])
    text = result.display()
    assert "Keto Plan" in text
    assert "70% match" in text
    assert "Recipe r" in text


def test_recipes_by_ingredients():
    """Recipes are matched by pantry ingredients."""
    recipes = [
        _recipe("a", ingredients=["Spinach", "Paneer"]),
        _recipe("b", ingredients=["Rice"]),
    ]
    assert [r.id for r in recipes_by_ingredients(recipes, ["paneer"])] == ["a"]
    assert recipes_by_ingredients(recipes, ["tofu"]) == []


def test_link_ingredients_to_products():
    """Ingredients link to products by name."""
    recipe = Recipe(
        id="r",
        name="Salad",
        ingredients=[
            RecipeIngredient(name="Baby Spinach"),
            RecipeIngredient(name="Quinoa", product_id="q-1"),
            RecipeIngredient(name="Saffron"),
        ],
    )
    products = [
        Product(id="p-1", name="Spinach", price=Decimal("40")),
        Product(id="p-2", name="Quinoa"),
    ]
    linked = link_ingredients_to_products(recipe, products)
    assert [i.product_id for i in linked] == ["p-1", "q-1", None]


def test_filter_products():
    """Products filter by category, diet and search text."""
    products = [
        Product(id="1", name="Almond Milk", category="dairy", diet_compatible=["vegan"]),
        Product(id="2", name="Greek Yogurt", category="dairy", diet_compatible=["vegetarian"]),
        Product(id="3", name="Oats", category="grains", description="Rolled oats, milk friendly"),
    ]
    assert [p.id for p in filter_products(products, category="dairy")] == ["1", "2"]
    assert [p.id for p in filter_products(products, diet="vegan")] == ["1"]
    assert [p.id for p in filter_products(products, query="milk")] == ["1", "3"]
    assert filter_products(products) == products


def test_recipes_by_diet():
    """Recipes filter by diet tag."""
    recipes = [_recipe("a", ["keto"]), _recipe("b", ["vegan", "keto"]), _recipe("c")]
    assert [r.id for r in recipes_by_diet(recipes, "keto")] == ["a", "b"]
