"""
Recipe, review and profile models for the Resep Nusantara client.

Remote records (recipes, reviews) are parsed into pydantic models as they come
off the wire. Unknown fields are kept (extra="allow") so that views can show
whatever the API sends without the models having to track every column.

# NOTE: ReconciledReview and ReconciliationReport are transient. They are rebuilt
    on every reconciliation run and never persisted.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USERNAME = "Pengguna"


class Pagination(BaseModel):
    """Pagination metadata reported by the recipe listing endpoint."""
    page: Optional[int] = Field(None, description="Page number of this response (1-indexed)")
    total_pages: Optional[int] = Field(None, description="Total number of pages available")
    limit: Optional[int] = Field(None, description="Page size used by the server")
    total: Optional[int] = Field(None, description="Total number of items across all pages")

    model_config = ConfigDict(extra="allow")


class RecipeSummary(BaseModel):
    """
    Recipe as it appears in the catalog listing.

    Attributes:
        id: Recipe identifier (coerced to string)
        name: Display name
        category: "makanan" or "minuman" (free-form, not validated)
        image_url: URL of the recipe image
        average_rating: Mean review rating, if the API computed one
    """
    id: str = Field(..., description="Recipe identifier")
    name: str = Field("", description="Recipe name")
    category: Optional[str] = Field(None, description="Recipe category (makanan, minuman)")
    image_url: Optional[str] = Field(None, description="URL to recipe image")
    average_rating: Optional[float] = Field(None, description="Average review rating")

    model_config = ConfigDict(extra="allow")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _null_name(cls, value: Any) -> Any:
        return "" if value is None else value


class RecipeDetail(RecipeSummary):
    """Full recipe record returned by GET /recipes/{id}."""
    description: Optional[str] = Field(None, description="Recipe description")
    ingredients: Optional[Any] = Field(None, description="Ingredients as sent by the API")
    steps: Optional[Any] = Field(None, description="Preparation steps as sent by the API")


class RecipePage(BaseModel):
    """One page of the catalog listing."""
    items: List[RecipeSummary] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class Review(BaseModel):
    """A review attached to a recipe."""
    id: str = Field(..., description="Review identifier")
    user_identifier: Optional[str] = Field(None, description="Opaque identifier of the author")
    username: Optional[str] = Field(None, description="Display name at the time of writing")
    rating: Optional[float] = Field(None, description="Star rating (1-5)")
    comment: Optional[str] = Field(None, description="Review text")
    created_at: Optional[str] = Field(None, description="ISO timestamp of creation")

    model_config = ConfigDict(extra="allow")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class ReconciledReview(Review):
    """A review by the current user, enriched with metadata of the recipe it belongs to."""
    recipe_name: str = ""
    recipe_id: str
    recipe_image: Optional[str] = None
    recipe_category: Optional[str] = None


class ReconciliationReport(BaseModel):
    """
    Outcome of one reconciliation run.

    Attributes:
        reviews: Reviews authored by the user, in catalog order
        total_recipes: Number of recipes drained from the catalog
        total_reviews_checked: Number of reviews inspected across all recipes
        failed_recipe_ids: Recipes whose review fetch failed and contributed nothing
        user_identifier: Identifier the reviews were matched against
        username: Display name of the user (informational only)
    """
    reviews: List[ReconciledReview] = Field(default_factory=list)
    total_recipes: int = 0
    total_reviews_checked: int = 0
    failed_recipe_ids: List[str] = Field(default_factory=list)
    user_identifier: str = ""
    username: Optional[str] = None


class UserProfile(BaseModel):
    """Locally persisted profile of the anonymous user."""
    identifier: str
    username: str = DEFAULT_USERNAME
    bio: str = ""
    avatar: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ProfileResult(BaseModel):
    """Result of a profile write: either the saved profile or an error message."""
    success: bool
    data: Optional[UserProfile] = None
    message: Optional[str] = None
