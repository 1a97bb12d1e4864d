from typing import List, Tuple
import structlog
from catalog.category_tree import CategoryTree
from catalog.models import Category, TaxCategory, TaxCategoryDraft, TaxRate
from pipeline.chunks import await_with_timeout
from pipeline.context import JobResources, StepContext, promotes
from pipeline.errors import AmbiguousMatchError
from pipeline.state import JobState

logger = structlog.get_logger(__name__)

RESOURCE = "tax-categories"

# (country, rate); every rate is included in the gross price
DEFAULT_RATES: List[Tuple[str, float]] = [
    ("DE", 0.19),
    ("CH", 0.08),
    ("CZ", 0.21),
    ("IT", 0.22),
    ("AU", 0.20),
]


def default_draft(name: str) -> TaxCategoryDraft:
    return TaxCategoryDraft(
        name=name,
        rates=[TaxRate(name=name, amount=amount, included_in_price=True, country=country)
               for country, amount in DEFAULT_RATES],
    )


@promotes("tax_category", "category_tree")
async def tax_category_node(state: JobState, local: StepContext, res: JobResources) -> None:
    name = res.settings.tax_category_name

    async def find_or_create() -> TaxCategory:
        matches = await res.retry.call(lambda: res.client.find_by_name(RESOURCE, name, TaxCategory))
        if len(matches) > 1:
            raise AmbiguousMatchError(RESOURCE, name, len(matches))
        if matches:
            return matches[0]
        created = await res.retry.call(lambda: res.client.create(RESOURCE, default_draft(name).to_wire()))
        logger.info("tax_category_created", name=name, rates=len(DEFAULT_RATES))
        return TaxCategory.model_validate(created)

    local["tax_category"] = await await_with_timeout(
        find_or_create(), res.settings.tax_category_timeout, f"resolve tax category '{name}'"
    )

    categories = await await_with_timeout(
        res.retry.call(lambda: res.client.fetch_all("categories", Category)),
        res.settings.category_load_timeout,
        "load categories",
    )
    tree = CategoryTree.of(categories)
    logger.info("category_tree_built", categories=len(tree), roots=len(tree.roots))
    local["category_tree"] = tree
