import asyncio
import itertools
import re
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest

from catalog.base import CatalogClient, RemoteRejectionError
from catalog.models import Attribute, PagedQueryResult, ProductDraft, ProductVariantDraft, Reference
from config.settings import Settings
from pipeline.chunks import RetryPolicy
from pipeline.context import JobResources

_EQ = re.compile(r'^(\w+)\s*=\s*"(.*)"$')
_AFTER = re.compile(r'^id\s*>\s*"(.*)"$')


class FakeCatalogClient(CatalogClient):
    """In-memory catalog that records calls and the peak number of calls in flight."""
    name = "fake"

    def __init__(self, delay: float = 0.0):
        self.store: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.calls: List[tuple] = []
        self.delay = delay
        self.query_delay = 0.0
        self.in_flight = 0
        self.peak_in_flight = 0
        self.reject: Optional[callable] = None
        self._seq = itertools.count(1)

    def _next_id(self, resource: str) -> str:
        return f"{resource}-{next(self._seq):05d}"

    def seed(self, resource: str, **entity) -> Dict[str, Any]:
        entity.setdefault("id", self._next_id(resource))
        entity.setdefault("version", 1)
        self.store[resource].append(entity)
        return entity

    def created(self, resource: str) -> List[Dict[str, Any]]:
        return [c[2] for c in self.calls if c[0] == "create" and c[1] == resource]

    def updated(self, resource: str) -> List[tuple]:
        return [c[2:] for c in self.calls if c[0] == "update" and c[1] == resource]

    @asynccontextmanager
    async def _tracked(self):
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            yield
        finally:
            self.in_flight -= 1

    async def query(self, resource, where=None, sort=None, limit=20, offset=0):
        self.calls.append(("query", resource, where))
        if self.query_delay:
            await asyncio.sleep(self.query_delay)
        items = list(self.store[resource])
        if sort:
            items.sort(key=lambda e: e["id"])
        if where:
            m = _EQ.match(where)
            if m:
                items = [e for e in items if str(e.get(m.group(1))) == m.group(2)]
            m = _AFTER.match(where)
            if m:
                items = [e for e in items if e["id"] > m.group(1)]
        page = items[offset:offset + limit]
        return PagedQueryResult(limit=limit, offset=offset, count=len(page), results=[dict(e) for e in page])

    async def create(self, resource, draft):
        async with self._tracked():
            self.calls.append(("create", resource, draft))
            if self.reject and self.reject(resource, draft):
                raise RemoteRejectionError(400, "InvalidInput", [{"code": "InvalidInput"}])
            entity = {**draft, "id": self._next_id(resource), "version": 1}
            if resource == "customer-groups":
                entity["name"] = draft["groupName"]
            if resource == "products":
                entity["masterData"] = {"published": False}
            self.store[resource].append(entity)
            return dict(entity)

    async def update(self, resource, id, version, actions):
        async with self._tracked():
            self.calls.append(("update", resource, id, version, actions))
            entity = next(e for e in self.store[resource] if e["id"] == id)
            if entity["version"] != version:
                raise RemoteRejectionError(409, "ConcurrentModification")
            for a in actions:
                if a["action"] == "publish":
                    entity.setdefault("masterData", {})["published"] = True
            entity["version"] += 1
            return dict(entity)


def make_draft(en: Optional[str] = "Chair", de: Optional[str] = None, attrs=(), **kw) -> ProductDraft:
    name = {}
    if en is not None:
        name["en"] = en
    if de is not None:
        name["de"] = de
    return ProductDraft(
        product_type=Reference(type_id="product-type", key=kw.pop("product_type", "furniture")),
        name=name,
        slug={"en": (en or "x").lower()},
        master_variant=ProductVariantDraft(
            sku=kw.pop("sku", None),
            attributes=[Attribute(name=n, value=v) for n, v in attrs],
            prices=kw.pop("prices", []),
        ),
        **kw,
    )


@pytest.fixture
def client():
    return FakeCatalogClient()


@pytest.fixture
def settings():
    return Settings(project_key="test-project", client_id="id", client_secret="secret")


@pytest.fixture
def make_resources(client, settings):
    def _make(records=None, **overrides):
        s = settings.model_copy(update=overrides)
        return JobResources(client=client, settings=s, records=records,
                            retry=RetryPolicy(s.max_attempts, s.retry_backoff_seconds))
    return _make


def run_config(res: JobResources) -> dict:
    return {"configurable": {"resources": res}}
