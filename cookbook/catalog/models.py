from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class MatchType(str, Enum):
    all = "all"
    any = "any"


class SortField(str, Enum):
    created_at = "created_at"
    rating = "rating"
    prep_time = "prep_time"
    cook_time = "cook_time"
    total_time = "total_time"
    title = "title"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


# ── Snapshot entities ────────────────────────────────────────────────────


class Ingredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(..., min_length=1)
    category: str = ""
    icon: str | None = None


class Equipment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(..., min_length=1)
    icon: str | None = None


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(..., min_length=1)


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(..., min_length=1)


class RecipeIngredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    ingredient: Ingredient
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1)


class RecipeEquipment(BaseModel):
    model_config = ConfigDict(frozen=True)

    equipment: Equipment
    required: bool = True


class RecipeStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_number: int = Field(..., ge=1)
    description: str
    duration: int | None = Field(default=None, ge=0, description="Minutes")


class Recipe(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str = Field(..., min_length=1)
    description: str = ""
    steps: list[RecipeStep] = Field(default_factory=list)
    prep_time: int = Field(default=0, ge=0, description="Minutes")
    cook_time: int = Field(default=0, ge=0, description="Minutes")
    servings: int = Field(default=1, ge=1)
    difficulty: Difficulty = Difficulty.medium
    is_public: bool = True
    author_id: int
    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    rating_count: int = Field(default=0, ge=0)
    created_at: datetime
    image_url: str | None = None
    ingredients: list[RecipeIngredient] = Field(..., min_length=1)
    equipment: list[RecipeEquipment] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)

    @computed_field
    @property
    def total_time(self) -> int:
        return self.prep_time + self.cook_time


class FridgeItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    ingredient_id: int
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = None
    expiry_date: date | None = None
    notes: str | None = None


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    recipe_id: int
    user_id: int
    content: str = Field(..., min_length=1, max_length=1000)
    rating: int | None = Field(default=None, ge=1, le=5)
    parent_id: int | None = None


# ── Internal request values ──────────────────────────────────────────────


class RefFilter(BaseModel):
    """A multi-valued filter: a recipe matches when it has any listed id or name."""

    model_config = ConfigDict(frozen=True)

    ids: frozenset[int] = frozenset()
    names: frozenset[str] = frozenset()

    @field_serializer("ids", "names")
    def _sorted(self, value: frozenset) -> list:
        return sorted(value)

    @property
    def is_empty(self) -> bool:
        return not self.ids and not self.names


class SearchQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    term: str | None = None
    categories: RefFilter = RefFilter()
    tags: RefFilter = RefFilter()
    ingredients: RefFilter = RefFilter()
    equipment: RefFilter = RefFilter()
    difficulty: Difficulty | None = None
    max_prep_time: int | None = None
    max_cook_time: int | None = None
    max_total_time: int | None = None
    min_rating: float | None = None
    author_id: int | None = None
    sort_by: SortField = SortField.created_at
    sort_order: SortOrder = SortOrder.desc
    page: int = 1
    page_size: int = 20


class MatchPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    match_type: MatchType = MatchType.all
    max_missing_ingredients: int | None = None
    exclude_categories: frozenset[str] = frozenset()
    limit: int | None = None
    page: int = 1
    page_size: int = 20

    @field_serializer("exclude_categories")
    def _sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)


# ── Response shapes ──────────────────────────────────────────────────────


class RecipeSummary(BaseModel):
    id: int
    title: str
    description: str
    image_url: str | None
    difficulty: Difficulty
    prep_time: int
    cook_time: int
    total_time: int
    servings: int
    average_rating: float
    rating_count: int
    author_id: int
    created_at: datetime
    tags: list[str]
    categories: list[str]

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> RecipeSummary:
        return cls(
            id=recipe.id,
            title=recipe.title,
            description=recipe.description,
            image_url=recipe.image_url,
            difficulty=recipe.difficulty,
            prep_time=recipe.prep_time,
            cook_time=recipe.cook_time,
            total_time=recipe.total_time,
            servings=recipe.servings,
            average_rating=recipe.average_rating,
            rating_count=recipe.rating_count,
            author_id=recipe.author_id,
            created_at=recipe.created_at,
            tags=[t.name for t in recipe.tags],
            categories=[c.name for c in recipe.categories],
        )


class MatchResult(BaseModel):
    recipe: RecipeSummary
    matching_ingredients: int
    total_ingredients: int
    missing_ingredients: list[Ingredient]
    match_percentage: float = Field(..., ge=0.0, le=100.0)
    can_cook: bool


class PageInfo(BaseModel):
    total_count: int
    current_page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SearchResponse(BaseModel):
    recipes: list[RecipeSummary]
    pagination: PageInfo


class SuggestionResponse(BaseModel):
    suggestions: list[MatchResult]
    pagination: PageInfo
    total_fridge_items: int
    search_parameters: dict


class FridgeStats(BaseModel):
    total_items: int
    expiring_soon: int
    expired: int
    categories_count: int
    categories: list[str]


class RatingSummary(BaseModel):
    recipe_id: int
    average_rating: float
    rating_count: int


# ── HTTP bodies ──────────────────────────────────────────────────────────


class SuggestionRequest(BaseModel):
    ingredient_ids: list[int] = Field(default_factory=list)
    policy: dict = Field(default_factory=dict)


class CommentCreateRequest(BaseModel):
    user_id: int
    content: str = Field(..., min_length=1, max_length=1000)
    rating: int | None = Field(default=None, ge=1, le=5)
    parent_id: int | None = None


class CommentUpdateRequest(BaseModel):
    content: str | None = Field(default=None, min_length=1, max_length=1000)
    rating: int | None = Field(default=None, ge=1, le=5)
