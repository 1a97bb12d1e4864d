from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LocalizedString = Dict[str, str]


class CatalogModel(BaseModel):
    # wire format is camelCase; python side stays snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Reference(CatalogModel):
    type_id: str
    id: Optional[str] = None
    key: Optional[str] = None


# ---------- reference data ----------
class CustomerGroup(CatalogModel):
    id: str
    version: int = 1
    name: str
    key: Optional[str] = None


class CustomerGroupDraft(CatalogModel):
    group_name: str
    key: Optional[str] = None


class TaxRate(CatalogModel):
    name: str
    amount: float
    included_in_price: bool
    country: str
    id: Optional[str] = None
    state: Optional[str] = None


class TaxCategory(CatalogModel):
    id: str
    version: int = 1
    name: str
    key: Optional[str] = None
    rates: List[TaxRate] = Field(default_factory=list)


class TaxCategoryDraft(CatalogModel):
    name: str
    description: Optional[str] = None
    rates: List[TaxRate] = Field(default_factory=list)


class Category(CatalogModel):
    id: str
    version: int = 1
    key: Optional[str] = None
    name: LocalizedString = Field(default_factory=dict)
    slug: LocalizedString = Field(default_factory=dict)
    parent: Optional[Reference] = None
    order_hint: Optional[str] = None
    external_id: Optional[str] = None


class AttributeDefinition(CatalogModel):
    name: str
    type: Dict[str, Any] = Field(default_factory=dict)
    label: LocalizedString = Field(default_factory=dict)
    is_required: bool = False


class ProductType(CatalogModel):
    id: str
    version: int = 1
    key: Optional[str] = None
    name: str
    description: str = ""
    attributes: List[AttributeDefinition] = Field(default_factory=list)


class ProductTypeSet(BaseModel):
    """Read-only snapshot of every product type in the project."""

    product_types: List[ProductType] = Field(default_factory=list)

    def find_by_id(self, id: str) -> Optional[ProductType]:
        return next((p for p in self.product_types if p.id == id), None)

    def find_by_key(self, key: str) -> Optional[ProductType]:
        return next((p for p in self.product_types if p.key == key), None)

    def find_by_name(self, name: str) -> Optional[ProductType]:
        return next((p for p in self.product_types if p.name == name), None)

    def __iter__(self):
        return iter(self.product_types)

    def __len__(self) -> int:
        return len(self.product_types)


# ---------- products ----------
class Attribute(CatalogModel):
    name: str
    value: Any = None


class Money(CatalogModel):
    currency_code: str
    cent_amount: int


class PriceDraft(CatalogModel):
    value: Money
    country: Optional[str] = None
    customer_group: Optional[Reference] = None


class ProductVariantDraft(CatalogModel):
    sku: Optional[str] = None
    key: Optional[str] = None
    prices: List[PriceDraft] = Field(default_factory=list)
    attributes: List[Attribute] = Field(default_factory=list)

    def has_attribute(self, name: str, value: Any) -> bool:
        return any(a.name == name and a.value == value for a in self.attributes)


class ProductDraft(CatalogModel):
    product_type: Reference
    name: LocalizedString = Field(default_factory=dict)
    slug: LocalizedString = Field(default_factory=dict)
    description: Optional[LocalizedString] = None
    key: Optional[str] = None
    categories: List[Reference] = Field(default_factory=list)
    tax_category: Optional[Reference] = None
    master_variant: ProductVariantDraft = Field(default_factory=ProductVariantDraft)
    variants: List[ProductVariantDraft] = Field(default_factory=list)
    publish: bool = False


class Product(CatalogModel):
    id: str
    version: int
    key: Optional[str] = None
    product_type: Optional[Reference] = None
    master_data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def published(self) -> bool:
        return bool(self.master_data.get("published", False))


class PagedQueryResult(CatalogModel):
    limit: int = 20
    offset: int = 0
    count: int = 0
    total: Optional[int] = None
    results: List[Dict[str, Any]] = Field(default_factory=list)
