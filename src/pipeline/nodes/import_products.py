from functools import partial
from itertools import islice
from typing import Any, Dict, List

import structlog

from catalog.category_tree import CategoryTree
from catalog.models import (
    PriceDraft,
    ProductDraft,
    ProductTypeSet,
    ProductVariantDraft,
    Reference,
    TaxCategory,
)
from pipeline.chunks import chunked, dispatch_chunk
from pipeline.context import JobResources, StepContext, promotes
from pipeline.filters import is_known_bad, is_useful
from pipeline.state import ImportReport, JobState
from source.reader import ProductDraftReader

logger = structlog.get_logger(__name__)


class ReferenceData:
    """Promoted reference entities a draft is linked against before creation."""

    def __init__(self, state: JobState, customer_group_name: str):
        self.customer_group_id: str = state.require("customer_group_id")
        self.customer_group_name = customer_group_name
        self.tax_category: TaxCategory = state.require("tax_category")
        self.category_tree: CategoryTree = state.require("category_tree")
        self.product_types: ProductTypeSet = state.require("product_types")

    def link(self, draft: ProductDraft) -> ProductDraft:
        update: Dict[str, Any] = {}
        if draft.tax_category is None:
            update["tax_category"] = Reference(type_id="tax-category", id=self.tax_category.id)

        pt = draft.product_type
        if pt.id is None and pt.key:
            found = self.product_types.find_by_key(pt.key)
            if found:
                update["product_type"] = Reference(type_id="product-type", id=found.id)

        update["categories"] = [self._category(c) for c in draft.categories]
        update["master_variant"] = self._variant(draft.master_variant)
        update["variants"] = [self._variant(v) for v in draft.variants]
        return draft.model_copy(update=update)

    def _category(self, ref: Reference) -> Reference:
        if ref.id is None and ref.key:
            found = self.category_tree.find_by_key(ref.key)
            if found:
                return Reference(type_id="category", id=found.id)
        return ref

    def _variant(self, variant: ProductVariantDraft) -> ProductVariantDraft:
        return variant.model_copy(update={"prices": [self._price(p) for p in variant.prices]})

    def _price(self, price: PriceDraft) -> PriceDraft:
        group = price.customer_group
        if group and group.id is None and group.key == self.customer_group_name:
            return price.model_copy(
                update={"customer_group": Reference(type_id="customer-group", id=self.customer_group_id)}
            )
        return price


async def _create(res: JobResources, payload: Dict[str, Any]) -> Dict[str, Any]:
    return await res.retry.call(lambda: res.client.create("products", payload))


async def write_products(drafts: List[ProductDraft], refs: ReferenceData, res: JobResources, chunk_no: int) -> int:
    """Create every draft of one chunk concurrently; returns how many were excluded."""
    keep = [d for d in drafts if not is_known_bad(d)]
    calls = [partial(_create, res, refs.link(d).to_wire()) for d in keep]
    await dispatch_chunk(calls, res.settings.product_create_timeout, f"create products (chunk {chunk_no})")
    return len(drafts) - len(keep)


@promotes("import_report")
async def import_products_node(state: JobState, local: StepContext, res: JobResources) -> None:
    s = res.settings
    refs = ReferenceData(state, s.customer_group_name)
    if res.records is not None:
        records = islice(res.records, s.max_products)
    else:
        records = ProductDraftReader(s.products_resource, s.max_products)

    report = ImportReport()
    for chunk in chunked(records, s.chunk_size):
        report.chunks += 1
        report.read += len(chunk)
        useful = [d for d in chunk if is_useful(d, s.primary_locale, s.secondary_locale)]
        report.filtered += len(chunk) - len(useful)

        excluded = await write_products(useful, refs, res, report.chunks)
        report.excluded += excluded
        report.created += len(useful) - excluded
        logger.info(
            "chunk_written",
            chunk=report.chunks,
            read=len(chunk),
            filtered=len(chunk) - len(useful),
            excluded=excluded,
            created=len(useful) - excluded,
        )

    logger.info("products_imported", **report.model_dump())
    local["import_report"] = report
