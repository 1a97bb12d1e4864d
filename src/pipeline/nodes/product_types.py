import structlog
from catalog.models import ProductType, ProductTypeSet
from pipeline.chunks import await_with_timeout
from pipeline.context import JobResources, StepContext, promotes
from pipeline.state import JobState

logger = structlog.get_logger(__name__)


@promotes("product_types")
async def product_types_node(state: JobState, local: StepContext, res: JobResources) -> None:
    # always a fresh load, never created
    types = await await_with_timeout(
        res.retry.call(lambda: res.client.fetch_all("product-types", ProductType)),
        res.settings.product_types_timeout,
        "load product types",
    )
    logger.info("product_types_loaded", count=len(types))
    local["product_types"] = ProductTypeSet(product_types=types)
