import csv
import io
import json
import os
import re
from itertools import islice
from typing import BinaryIO, Dict, Iterator, List, Optional, Union

from catalog.models import (
    Attribute,
    Money,
    PriceDraft,
    ProductDraft,
    ProductVariantDraft,
    Reference,
)

Resource = Union[str, os.PathLike, BinaryIO]

_LOCALIZED = ("name", "slug", "description")
_PRICE_RE = re.compile(r"^\s*([A-Z]{3})\s+(\d+)\s*(?:@\s*(\S+))?\s*$")


class ProductDraftReader:
    """
    Lazy, single-pass source of ProductDraft records, capped at ``max_products``.

    ``.jsonl`` resources carry one camelCase ProductDraft per line; anything
    else is read as CSV (see ``draft_from_row`` for the columns).
    """

    def __init__(self, resource: Resource, max_products: int = 1000, fmt: Optional[str] = None):
        self.resource = resource
        self.max_products = max_products
        self.fmt = fmt or _guess_format(resource)
        self._records: Optional[Iterator[ProductDraft]] = None

    def __iter__(self) -> Iterator[ProductDraft]:
        if self._records is None:
            self._records = islice(self._read(), self.max_products)
        return self._records

    def _read(self) -> Iterator[ProductDraft]:
        stream = self._open()
        text = io.TextIOWrapper(stream, encoding="utf-8", newline="")
        try:
            if self.fmt == "jsonl":
                for line in text:
                    line = line.strip()
                    if not line:
                        continue
                    yield ProductDraft.model_validate(json.loads(line))
            else:
                for row in csv.DictReader(text):
                    yield draft_from_row(row)
        finally:
            if stream is self.resource:
                text.detach()  # caller owns the stream
            else:
                text.close()

    def _open(self) -> BinaryIO:
        if isinstance(self.resource, (str, os.PathLike)):
            return open(self.resource, "rb")
        return self.resource


def _guess_format(resource: Resource) -> str:
    name = os.fspath(resource) if isinstance(resource, (str, os.PathLike)) else getattr(resource, "name", "")
    return "jsonl" if str(name).lower().endswith(".jsonl") else "csv"


# ---------- CSV mapping ----------
def draft_from_row(row: Dict[str, str]) -> ProductDraft:
    """
    Columns:
      productType            product type key
      key, sku               product key, master variant sku
      name.<locale>          likewise slug.<locale>, description.<locale>
      categories             comma separated category keys
      prices                 "EUR 1999|EUR 1799@b2b" (cent amounts, optional customer group key)
      attribute.<name>       master variant attribute, empty cells skipped
    """
    localized: Dict[str, Dict[str, str]] = {f: {} for f in _LOCALIZED}
    attributes: List[Attribute] = []
    for column, value in row.items():
        if column is None or value is None:
            continue
        value = value.strip()
        field, _, suffix = column.partition(".")
        if field in _LOCALIZED and suffix:
            if value:
                localized[field][suffix] = value
        elif field == "attribute" and suffix and value:
            attributes.append(Attribute(name=suffix, value=value))

    sku = (row.get("sku") or "").strip() or None
    slugs = localized["slug"]
    for locale, name in localized["name"].items():
        slugs.setdefault(locale, slugify(name, sku))

    categories = [
        Reference(type_id="category", key=k.strip())
        for k in (row.get("categories") or "").split(",")
        if k.strip()
    ]
    return ProductDraft(
        product_type=Reference(type_id="product-type", key=(row.get("productType") or "").strip()),
        key=(row.get("key") or "").strip() or None,
        name=localized["name"],
        slug=slugs,
        description=localized["description"] or None,
        categories=categories,
        master_variant=ProductVariantDraft(
            sku=sku,
            prices=parse_prices(row.get("prices") or ""),
            attributes=attributes,
        ),
    )


def parse_prices(cell: str) -> List[PriceDraft]:
    prices: List[PriceDraft] = []
    for entry in cell.split("|"):
        if not entry.strip():
            continue
        m = _PRICE_RE.match(entry)
        if not m:
            raise ValueError(f"unreadable price entry: {entry!r}")
        currency, cents, group = m.groups()
        prices.append(PriceDraft(
            value=Money(currency_code=currency, cent_amount=int(cents)),
            customer_group=Reference(type_id="customer-group", key=group) if group else None,
        ))
    return prices


def slugify(name: str, suffix: Optional[str] = None) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "product"
    if suffix:
        base = f"{base}-{re.sub(r'[^a-z0-9]+', '-', suffix.lower()).strip('-')}"
    return base[:256]
