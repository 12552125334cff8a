"""Diet compatibility scoring for the recommendation quiz.

A keyword heuristic, not a solver: each plan starts at ``BASE_SCORE`` and
gains a fixed bonus for every profile criterion its name or
``suitable_for`` tags mention. The constants are business rules and must
not be tuned.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .api.models import DietPlan, Product, Recipe, RecipeIngredient, UserProfile

BASE_SCORE = 50
GOAL_BONUS = 20
RESTRICTION_BONUS = 15
BUDGET_BONUS = 10
MIN_SCORE = 60
MAX_SCORE = 98

MAX_PLANS = 3
MAX_RECIPES = 5

FALLBACK_NAME = "Balanced Nutrition Plan"
FALLBACK_SCORE = 75

# health goal -> (plan keywords, feature label)
_GOAL_KEYWORDS: dict[str, tuple[list[str], str]] = {
    "weight loss": (["weight loss", "keto", "low carb"], "Weight loss focused"),
    "heart health": (["heart", "mediterranean", "dash"], "Heart healthy"),
    "muscle building": (["protein", "muscle"], "Muscle building support"),
}

# dietary restriction -> (plan keywords, feature label)
_RESTRICTION_KEYWORDS: dict[str, tuple[list[str], str]] = {
    "vegetarian": (["vegetarian"], "Vegetarian friendly"),
    "vegan": (["vegan"], "Vegan friendly"),
    "gluten free": (["gluten free"], "Gluten free"),
}

# profile budget prefix -> (plan budget tiers, feature label)
_BUDGET_TIERS: dict[str, tuple[set[str], str]] = {
    "budget friendly": ({"low", "budget", "budget friendly"}, "Budget friendly"),
    "premium": ({"high", "premium"}, "Premium ingredients"),
}

# restrictions that exclude recipes tagged without them
_EXCLUSIVE_DIETS = ("vegetarian", "vegan")


@dataclass
class DietRecommendation:
    name: str
    score: int
    description: str = ""
    features: list[str] = field(default_factory=list)
    plan_id: str = ""
    plan: DietPlan | None = None


@dataclass
class CompatibilityResult:
    recommendations: list[DietRecommendation]
    recipes: list[Recipe]

    def display(self) -> str:
        """Format the result for terminal display."""
        lines: list[str] = ["Recommended diet plans", ""]
        for i, rec in enumerate(self.recommendations, 1):
            lines.append(f"  {i}. {rec.name:<32} {rec.score:>3}% match")
            if rec.description:
                lines.append(f"     {rec.description}")
            for feature in rec.features:
                lines.append(f"     - {feature}")
        if self.recipes:
            lines.append("")
            lines.append("Compatible recipes")
            lines.append("")
            for recipe in self.recipes:
                lines.append(f"  * {recipe.name}")
        return "\n".join(lines)


def _normalize(text: str) -> str:
    """Lower-case and fold '-'/'_' to spaces so tags and names compare alike."""
    return " ".join(text.lower().replace("-", " ").replace("_", " ").split())


def _plan_text(plan: DietPlan) -> str:
    return " | ".join(_normalize(t) for t in [plan.name, *plan.suitable_for])


def _mentions(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def score_plan(profile: UserProfile, plan: DietPlan) -> DietRecommendation:
    """Score a single plan against the profile (capped, not thresholded)."""
    text = _plan_text(plan)
    score = BASE_SCORE
    features: list[str] = []

    goals = {_normalize(g) for g in profile.health_goals}
    for goal, (keywords, label) in _GOAL_KEYWORDS.items():
        if goal in goals and _mentions(text, keywords):
            score += GOAL_BONUS
            features.append(label)

    restrictions = {_normalize(r) for r in profile.dietary_restrictions}
    for restriction, (keywords, label) in _RESTRICTION_KEYWORDS.items():
        if restriction in restrictions and _mentions(text, keywords):
            score += RESTRICTION_BONUS
            features.append(label)

    budget = _normalize(profile.budget)
    plan_budget = _normalize(plan.budget)
    for prefix, (tiers, label) in _BUDGET_TIERS.items():
        if budget.startswith(prefix) and plan_budget in tiers:
            score += BUDGET_BONUS
            features.append(label)

    return DietRecommendation(
        name=plan.name,
        score=min(score, MAX_SCORE),
        description=plan.description,
        features=features,
        plan_id=plan.id,
        plan=plan,
    )


def is_recipe_compatible(profile: UserProfile, recipe: Recipe) -> bool:
    """Untagged recipes are compatible; tagged ones must carry each exclusive diet."""
    tags = {_normalize(t) for t in recipe.diet_compatible}
    if not tags:
        return True
    restrictions = {_normalize(r) for r in profile.dietary_restrictions}
    for diet in _EXCLUSIVE_DIETS:
        if diet in restrictions and diet not in tags:
            return False
    return True


def _fallback() -> DietRecommendation:
    return DietRecommendation(
        name=FALLBACK_NAME,
        score=FALLBACK_SCORE,
        description="Well-rounded diet focusing on whole foods and balance",
        features=["Overall health", "Sustainable", "Easy to maintain"],
    )


def recommend(
    profile: UserProfile,
    diet_plans: list[DietPlan],
    recipes: list[Recipe] | None = None,
) -> CompatibilityResult:
    """Rank diet plans and filter recipes for a quiz profile.

    Plans scoring below ``MIN_SCORE`` are dropped; equal scores keep their
    input order. If nothing qualifies a single fallback plan is returned.
    """
    scored = [score_plan(profile, plan) for plan in diet_plans]
    qualified = [rec for rec in scored if rec.score >= MIN_SCORE]
    # sorted() is stable, so ties keep catalog order
    ranked = sorted(qualified, key=lambda rec: rec.score, reverse=True)
    if not ranked:
        ranked = [_fallback()]

    compatible = [r for r in recipes or [] if is_recipe_compatible(profile, r)]

    return CompatibilityResult(
        recommendations=ranked[:MAX_PLANS],
        recipes=compatible[:MAX_RECIPES],
    )


# ----------------------------------------------------------------------
# Client-side catalog filters
# ----------------------------------------------------------------------


def _names_overlap(a: str, b: str) -> bool:
    a, b = a.lower(), b.lower()
    return bool(a and b) and (a in b or b in a)


def recipes_by_ingredients(recipes: list[Recipe], ingredients: list[str]) -> list[Recipe]:
    """Recipes using at least one of the given pantry ingredients."""
    result: list[Recipe] = []
    for recipe in recipes:
        if any(
            _names_overlap(ing.name, pantry)
            for ing in recipe.ingredients
            for pantry in ingredients
        ):
            result.append(recipe)
    return result


def link_ingredients_to_products(
    recipe: Recipe, products: list[Product]
) -> list[RecipeIngredient]:
    """Attach a product id to each ingredient whose name matches a product.

    Ingredients already linked keep their product.
    """
    linked: list[RecipeIngredient] = []
    for ing in recipe.ingredients:
        product_id = ing.product_id
        if product_id is None:
            for product in products:
                if _names_overlap(ing.name, product.name):
                    product_id = product.id
                    break
        linked.append(
            RecipeIngredient(name=ing.name, quantity=ing.quantity, product_id=product_id)
        )
    return linked


def filter_products(
    products: list[Product],
    *,
    category: str | None = None,
    diet: str | None = None,
    query: str | None = None,
) -> list[Product]:
    """Filter the product catalog the way the storefront does client-side."""
    result = products
    if category:
        result = [p for p in result if p.category == category]
    if diet:
        result = [p for p in result if diet in p.diet_compatible]
    if query:
        q = query.lower()
        result = [
            p for p in result
            if q in p.name.lower() or q in p.description.lower()
        ]
    return result


def recipes_by_diet(recipes: list[Recipe], diet: str) -> list[Recipe]:
    return [r for r in recipes if diet in r.diet_compatible]
