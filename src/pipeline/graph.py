import uuid
from typing import Any, Dict, Iterable, Optional

import structlog
from langgraph.graph import StateGraph, END

from catalog.base import CatalogClient, get_client
from catalog.models import ProductDraft
from config.settings import Settings, get_settings
from .chunks import RetryPolicy
from .context import JobResources
from .state import JobState
from .nodes.customer_group import customer_group_node
from .nodes.tax_category import tax_category_node
from .nodes.product_types import product_types_node
from .nodes.import_products import import_products_node
from .nodes.publish_products import publish_products_node

logger = structlog.get_logger(__name__)

STEPS = [
    ("customer_group", customer_group_node),
    ("tax_category", tax_category_node),
    ("product_types", product_types_node),
    ("import_products", import_products_node),
    ("publish_products", publish_products_node),
]


def build_graph():
    g = StateGraph(JobState)
    for name, node in STEPS:
        g.add_node(name, node)

    g.set_entry_point(STEPS[0][0])
    for (prev, _), (nxt, _) in zip(STEPS, STEPS[1:]):
        g.add_edge(prev, nxt)
    g.add_edge(STEPS[-1][0], END)

    return g.compile()


def summarize(state: JobState) -> Dict[str, Any]:
    imp = state.import_report
    pub = state.publish_report
    return {
        "customer_group_id": state.customer_group_id,
        "tax_category_id": state.tax_category.id if state.tax_category else None,
        "counts": {
            "categories": len(state.category_tree) if state.category_tree else 0,
            "product_types": len(state.product_types) if state.product_types else 0,
            "read": imp.read if imp else 0,
            "filtered": imp.filtered if imp else 0,
            "excluded": imp.excluded if imp else 0,
            "created": imp.created if imp else 0,
            "published": pub.published if pub else 0,
        },
    }


async def run_job(
    settings: Optional[Settings] = None,
    client: Optional[CatalogClient] = None,
    records: Optional[Iterable[ProductDraft]] = None,
) -> Dict[str, Any]:
    """
    Run the five import steps in order. The first failing step aborts the
    job and its exception reaches the caller; nothing is rolled back.
    """
    settings = settings or get_settings()
    owns_client = client is None
    client = client or get_client(settings)
    res = JobResources(
        client=client,
        settings=settings,
        records=records,
        retry=RetryPolicy(settings.max_attempts, settings.retry_backoff_seconds),
    )
    job_id = uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(job_id=job_id)
    logger.info("job_started", steps=[name for name, _ in STEPS])
    try:
        result = await build_graph().ainvoke(JobState(), config={"configurable": {"resources": res}})
    except Exception as e:
        logger.error("job_failed", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        structlog.contextvars.unbind_contextvars("job_id")
        if owns_client:
            await client.aclose()

    # LangGraph may return a dict; coerce to JobState for attribute access
    final_state = JobState(**result) if isinstance(result, dict) else result
    summary = summarize(final_state)
    logger.info("job_completed", **summary["counts"])
    return {"job_id": job_id, **summary}
