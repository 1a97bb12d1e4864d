from pydantic import BaseModel
from typing import Any, Optional
from catalog.models import TaxCategory, ProductTypeSet
from catalog.category_tree import CategoryTree
from pipeline.errors import MissingDependencyError


class ImportReport(BaseModel):
    read: int = 0
    filtered: int = 0   # failed the usefulness check
    excluded: int = 0   # known-bad data dropped by the writer
    created: int = 0
    chunks: int = 0


class PublishReport(BaseModel):
    queried: int = 0
    published: int = 0
    chunks: int = 0


class JobState(BaseModel):
    """
    Shared job context. Every field is written once, by the step that
    promotes it, and only read by the steps after it.
    """
    customer_group_id: Optional[str] = None
    tax_category: Optional[TaxCategory] = None
    category_tree: Optional[CategoryTree] = None
    product_types: Optional[ProductTypeSet] = None
    import_report: Optional[ImportReport] = None
    publish_report: Optional[PublishReport] = None

    def require(self, key: str) -> Any:
        value = getattr(self, key, None)
        if value is None:
            raise MissingDependencyError(key)
        return value
