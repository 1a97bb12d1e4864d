from functools import partial
from typing import Any, Dict

import structlog

from catalog.models import Product
from pipeline.chunks import achunked, await_with_timeout, dispatch_chunk
from pipeline.context import JobResources, StepContext, promotes
from pipeline.state import JobState, PublishReport

logger = structlog.get_logger(__name__)

PUBLISH = [{"action": "publish"}]


async def _publish(res: JobResources, product: Product) -> Dict[str, Any]:
    # version as read with this page; never re-read across chunks
    return await res.retry.call(
        lambda: res.client.update("products", product.id, product.version, PUBLISH)
    )


@promotes("publish_report")
async def publish_products_node(state: JobState, local: StepContext, res: JobResources) -> None:
    """Publish every product in the project, not only the ones this run created."""
    s = res.settings
    report = PublishReport()

    def guard(fetch, page_no):
        return await_with_timeout(res.retry.call(fetch), s.publish_timeout, f"query products (page {page_no})")

    products = res.client.query_all("products", page_size=s.publish_chunk_size, guard=guard)
    async for chunk in achunked(products, s.publish_chunk_size):
        report.chunks += 1
        batch = [Product.model_validate(p) for p in chunk]
        await dispatch_chunk(
            [partial(_publish, res, p) for p in batch],
            s.publish_timeout,
            f"publish products (chunk {report.chunks})",
        )
        report.queried += len(batch)
        report.published += len(batch)
        logger.info("chunk_published", chunk=report.chunks, published=len(batch))

    logger.info("products_published", **report.model_dump())
    local["publish_report"] = report
