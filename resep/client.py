"""
Recipe API Client Module.

This module is the single point of contact with the remote recipe/review API.
Everything the core needs from the server goes through RecipeAPIClient:

- get_recipes(page, limit) - one page of the catalog listing
- get_recipe(recipe_id) - full record of one recipe
- get_reviews(recipe_id) - review list of one recipe

Unlike the view layer, the client does not swallow errors. Every failure
(network error, timeout, non-2xx status, `success: false` envelope, body that is
not JSON) is raised as RecipeAPIError so that the aggregation pipelines can
decide per item whether a failure is fatal.

Records that fail model validation are logged and skipped inside listings.
A single recipe that fails validation is raised as RecipeAPIError.

The API is not consistent about its envelope. Responses may look like
`{"success": true, "data": [...], "pagination": {...}}`, like
`{"data": {...}}` or be a bare list; _unwrap() normalizes all of them.
"""

import logging
from typing import Any, Dict, List, Optional, Type

import requests
from pydantic import BaseModel, ValidationError

from resep.config import ApiConfig
from resep.models import Pagination, RecipeDetail, RecipePage, RecipeSummary, Review

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _parse_records(model: Type[BaseModel], items: List[Any], label: str) -> List[Any]:
    """Build model instances from a list of records, skipping ones that do not validate."""
    records = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping %s that is not an object: %r", label, item)
            continue
        try:
            records.append(model(**item))
        except ValidationError as e:
            logger.warning("Skipping malformed %s %r: %d validation error(s)", label, item.get("id"), e.error_count())
    return records


class RecipeAPIError(Exception):
    """
    Raised when a request to the recipe API fails.

    Attributes:
        message: Human-readable message (from the API when it sent one)
        status: HTTP status code, or None for transport errors
        payload: Parsed response body, if any
    """

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class RecipeAPIClient:
    """
    Thin client for the recipe API built on a requests.Session.

    Args:
        base_url: API base URL (defaults to RESEP_API_BASE_URL)
        timeout: Per-request timeout in seconds (defaults to RESEP_API_TIMEOUT)
        session: Optional requests.Session (injectable for tests)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or ApiConfig.get_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else ApiConfig.get_timeout()
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = self._url(path)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise RecipeAPIError(f"Request to {path} timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise RecipeAPIError(f"Could not connect to recipe API at {self.base_url}") from e
        except requests.exceptions.RequestException as e:
            raise RecipeAPIError(f"Request to {path} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            message = None
            if isinstance(payload, dict):
                message = payload.get("message")
            raise RecipeAPIError(
                message or f"Recipe API returned HTTP {response.status_code} for {path}",
                status=response.status_code,
                payload=payload,
            )

        if payload is None:
            raise RecipeAPIError(f"Recipe API returned a non-JSON body for {path}", status=response.status_code)

        if isinstance(payload, dict) and payload.get("success") is False:
            raise RecipeAPIError(
                payload.get("message") or f"Recipe API reported failure for {path}",
                status=response.status_code,
                payload=payload,
            )

        return payload

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def get_recipes(
        self,
        page: int = 1,
        limit: int = 50,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> RecipePage:
        """
        Fetch one page of the recipe catalog.

        Args:
            page: Page number (1-indexed)
            limit: Page size
            category: Optional category filter ("makanan", "minuman")
            search: Optional free-text search

        Returns:
            RecipePage with the recipes of this page and the pagination metadata
            (None when the API did not report any).

        Raises:
            RecipeAPIError: If the request fails or the body is not a listing
        """
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if search:
            params["search"] = search

        payload = self._get("/recipes", params=params)
        data = self._unwrap(payload)
        if data is None:
            data = []
        if not isinstance(data, list):
            raise RecipeAPIError("Recipe listing is not a list", payload=payload)

        pagination = None
        if isinstance(payload, dict) and isinstance(payload.get("pagination"), dict):
            try:
                pagination = Pagination(**payload["pagination"])
            except ValidationError as e:
                raise RecipeAPIError("Recipe listing has invalid pagination", payload=payload) from e

        items = _parse_records(RecipeSummary, data, "recipe")
        logger.debug("Fetched recipes page=%d limit=%d -> %d items", page, limit, len(items))
        return RecipePage(items=items, pagination=pagination)

    def get_recipe(self, recipe_id: str) -> RecipeDetail:
        """
        Fetch the full record of a single recipe.

        Raises:
            RecipeAPIError: If the request fails or the recipe does not exist
        """
        payload = self._get(f"/recipes/{recipe_id}")
        data = self._unwrap(payload)
        if not isinstance(data, dict):
            raise RecipeAPIError(f"Recipe {recipe_id} not found", payload=payload)
        try:
            return RecipeDetail(**data)
        except ValidationError as e:
            raise RecipeAPIError(f"Recipe {recipe_id} is malformed", payload=payload) from e

    def get_reviews(self, recipe_id: str) -> List[Review]:
        """
        Fetch all reviews of a recipe, in the order the API returns them.

        Raises:
            RecipeAPIError: If the request fails or the body is not a list
        """
        payload = self._get(f"/recipes/{recipe_id}/reviews")
        data = self._unwrap(payload)
        if data is None:
            return []
        if not isinstance(data, list):
            raise RecipeAPIError(f"Review list of recipe {recipe_id} is not a list", payload=payload)
        return _parse_records(Review, data, f"review of recipe {recipe_id}")
