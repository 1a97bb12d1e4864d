# src/catalog/base.py
from __future__ import annotations
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Type, TypeVar
from pydantic import BaseModel
from catalog.models import PagedQueryResult
from pipeline.errors import ConfigurationError

M = TypeVar("M", bound=BaseModel)

# wraps one page fetch: guard(fetch, page_no) -> awaitable page
PageGuard = Callable[[Callable[[], Awaitable[PagedQueryResult]], int], Awaitable[PagedQueryResult]]


class RemoteRejectionError(Exception):
    """The catalog service answered, but refused the call."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []

    @property
    def transient(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500


class CatalogClient:
    """
    Operations every catalog adapter provides:
      query(resource, where, sort, limit, offset) -> PagedQueryResult
      query_all(resource, page_size)             -> async iterator of raw entities
      create(resource, draft)                    -> created entity
      update(resource, id, version, actions)     -> updated entity
    """
    name = "base"

    async def query(
        self,
        resource: str,
        where: Optional[str] = None,
        sort: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> PagedQueryResult:
        raise NotImplementedError

    async def query_all(
        self, resource: str, page_size: int = 500, guard: Optional[PageGuard] = None
    ) -> AsyncIterator[Dict[str, Any]]:
        """Walk every entity sorted by id, one page at a time."""
        last_id: Optional[str] = None
        page_no = 0
        while True:
            page_no += 1
            where = f'id > "{last_id}"' if last_id else None

            def fetch(where=where):
                return self.query(resource, where=where, sort="id asc", limit=page_size)

            page = await (guard(fetch, page_no) if guard else fetch())
            for entity in page.results:
                yield entity
            if len(page.results) < page_size:
                return
            last_id = page.results[-1]["id"]

    async def create(self, resource: str, draft: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def update(self, resource: str, id: str, version: int, actions: List[Dict[str, Any]]) -> Dict[str, Any]:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None

    # ---------- typed helpers ----------
    async def find_by_name(self, resource: str, name: str, model: Type[M]) -> List[M]:
        page = await self.query(resource, where=f'name="{_escape(name)}"')
        return [model.model_validate(r) for r in page.results]

    async def fetch_all(self, resource: str, model: Type[M], page_size: int = 500) -> List[M]:
        return [model.model_validate(r) async for r in self.query_all(resource, page_size=page_size)]


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def get_client(settings) -> CatalogClient:
    missing = [n for n in ("project_key", "client_id", "client_secret") if not getattr(settings, n)]
    if missing:
        raise ConfigurationError(
            "Catalog client not configured. Set CATALOG_IMPORT_* env vars: " + ", ".join(m.upper() for m in missing)
        )
    from .commercetools import CommercetoolsClient
    return CommercetoolsClient.from_settings(settings)
