"""
Review reconciliation pipeline.

The recipe API cannot answer "which reviews did this user write". The reviews
tab therefore derives it client-side:

1. drain the whole recipe catalog (sequential page fetches)
2. fetch the review list of every recipe (concurrent, one request per recipe)
3. keep the reviews whose user_identifier equals the local identifier
4. attach the recipe's name, id, image and category to each kept review

Matching is by the opaque identifier only. Usernames are editable and not
unique, so matching on them would attribute other people's reviews to the user.

A failed review fetch for one recipe is logged and that recipe contributes no
reviews. Only a failure of the catalog drain itself propagates.

Cost is one request per catalog page plus one per recipe. Callers should run
this only when the reviews view is opened and cache the result
(see resep.profile_tabs).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from resep.client import RecipeAPIClient
from resep.config import CatalogConfig
from resep.models import ReconciledReview, ReconciliationReport, RecipeSummary, Review
from resep.pagination import catalog_page_size, drain_all

logger = logging.getLogger(__name__)


def drain_catalog(client: RecipeAPIClient, page_size: Optional[int] = None) -> List[RecipeSummary]:
    """
    Fetch every recipe in the catalog.

    Raises:
        RecipeAPIError: If any page fetch fails
    """
    limit = page_size or catalog_page_size()
    return drain_all(lambda page: client.get_recipes(page=page, limit=limit))


def _enrich(review: Review, recipe: RecipeSummary) -> ReconciledReview:
    data = review.model_dump()
    data.update(
        recipe_name=recipe.name,
        recipe_id=recipe.id,
        recipe_image=recipe.image_url,
        recipe_category=recipe.category,
    )
    return ReconciledReview(**data)


def reconcile_with_report(
    client: RecipeAPIClient,
    user_identifier: str,
    username: Optional[str] = None,
    max_workers: Optional[int] = None,
    page_size: Optional[int] = None,
) -> ReconciliationReport:
    """
    Collect the reviews written by user_identifier across the whole catalog.

    Args:
        client: Recipe API client
        user_identifier: Local identifier of the current user
        username: Display name (reported back, never used for matching)
        max_workers: Cap on concurrent review fetches (defaults to RESEP_MAX_WORKERS)
        page_size: Catalog page size (defaults to RESEP_PAGE_SIZE)

    Returns:
        ReconciliationReport whose reviews are in catalog order, then in the
        API's review order within each recipe

    Raises:
        RecipeAPIError: If draining the catalog fails
    """
    report = ReconciliationReport(user_identifier=user_identifier or "", username=username)
    if not user_identifier:
        logger.warning("No user identifier given, skipping review reconciliation")
        return report

    logger.info("Reconciling reviews for user_identifier=%s username=%r", user_identifier, username)
    recipes = drain_catalog(client, page_size=page_size)
    report.total_recipes = len(recipes)
    if not recipes:
        return report

    def fetch(recipe: RecipeSummary) -> Tuple[RecipeSummary, Optional[List[Review]]]:
        try:
            return recipe, client.get_reviews(recipe.id)
        except Exception as e:
            logger.error("Error fetching reviews for recipe %s: %s", recipe.id, e)
            return recipe, None

    workers = min(max_workers or CatalogConfig.get_max_workers(), len(recipes))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(fetch, recipes))

    for recipe, reviews in results:
        if reviews is None:
            report.failed_recipe_ids.append(recipe.id)
            continue
        report.total_reviews_checked += len(reviews)
        for review in reviews:
            if review.user_identifier == user_identifier:
                report.reviews.append(_enrich(review, recipe))

    logger.info(
        "Reconciliation done: recipes=%d reviews_checked=%d matched=%d failed_recipes=%d",
        report.total_recipes,
        report.total_reviews_checked,
        len(report.reviews),
        len(report.failed_recipe_ids),
    )
    return report


def reconcile(
    client: RecipeAPIClient,
    user_identifier: str,
    username: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> List[ReconciledReview]:
    """Reviews written by user_identifier, enriched with recipe metadata."""
    return reconcile_with_report(client, user_identifier, username, max_workers=max_workers).reviews


def sort_by_date(reviews: List[ReconciledReview], newest_first: bool = True) -> List[ReconciledReview]:
    """Presentation helper: order reviews by created_at (missing dates last)."""
    dated = [r for r in reviews if r.created_at]
    undated = [r for r in reviews if not r.created_at]
    dated.sort(key=lambda r: r.created_at, reverse=newest_first)
    return dated + undated
