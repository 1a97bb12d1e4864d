# src/catalog/commercetools.py
# commercetools HTTP API adapter matching the base.py interface.
#
# Uses:
#  - OAuth2 client-credentials token from {auth_url}/oauth/token
#  - {api_url}/{project_key}/{resource} for query/create
#  - {api_url}/{project_key}/{resource}/{id} for update

from __future__ import annotations
from typing import Any, Dict, List, Optional
import time
import httpx
import structlog

from catalog.base import CatalogClient, RemoteRejectionError
from catalog.models import PagedQueryResult

logger = structlog.get_logger(__name__)


class _ClientCredentials:
    def __init__(self, auth_url: str, client_id: str, client_secret: str, scope: str) -> None:
        self.base = auth_url.rstrip("/")
        self.cid = client_id
        self.csec = client_secret
        self.scope = scope
        self._tok: Optional[str] = None
        self._exp: float = 0.0

    async def access_token(self, http: httpx.AsyncClient) -> str:
        now = time.time()
        if self._tok and now < self._exp - 60:  # reuse until ~1 min before expiry
            return self._tok
        r = await http.post(
            f"{self.base}/oauth/token",
            data={"grant_type": "client_credentials", "scope": self.scope},
            auth=(self.cid, self.csec),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if r.status_code != 200:
            raise RemoteRejectionError(r.status_code, "token request failed", _errors(r))
        j = r.json()
        self._tok = j["access_token"]
        self._exp = now + float(j.get("expires_in", 172800))
        return self._tok


class CommercetoolsClient(CatalogClient):
    name = "commercetools"

    def __init__(
        self,
        *,
        api_url: str,
        project_key: str,
        auth: _ClientCredentials,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base = f"{api_url.rstrip('/')}/{project_key}"
        self.auth = auth
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "CommercetoolsClient":
        scope = settings.scope or f"manage_project:{settings.project_key}"
        auth = _ClientCredentials(settings.auth_url, settings.client_id, settings.client_secret, scope)
        return cls(api_url=settings.api_url, project_key=settings.project_key, auth=auth, transport=transport)

    async def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {await self.auth.access_token(self._http)}",
            "Accept": "application/json",
            "User-Agent": "catalog-importer/0.1",
        }

    async def _send(self, method: str, path: str, **kw) -> Dict[str, Any]:
        r = await self._http.request(method, f"{self.base}/{path}", headers=await self._headers(), **kw)
        if not (200 <= r.status_code < 300):
            errs = _errors(r)
            logger.warning("catalog_call_rejected", method=method, path=path, status=r.status_code, errors=errs)
            raise RemoteRejectionError(r.status_code, _message(r), errs)
        return r.json()

    # ---------- public API ----------
    async def query(
        self,
        resource: str,
        where: Optional[str] = None,
        sort: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> PagedQueryResult:
        params: Dict[str, Any] = {"limit": limit, "offset": offset, "withTotal": "false"}
        if where:
            params["where"] = where
        if sort:
            params["sort"] = sort
        return PagedQueryResult.model_validate(await self._send("GET", resource, params=params))

    async def create(self, resource: str, draft: Dict[str, Any]) -> Dict[str, Any]:
        return await self._send("POST", resource, json=draft)

    async def update(self, resource: str, id: str, version: int, actions: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self._send("POST", f"{resource}/{id}", json={"version": version, "actions": actions})

    async def aclose(self) -> None:
        await self._http.aclose()


# ---------- response helpers ----------
def _body(r: httpx.Response) -> dict:
    try:
        j = r.json()
    except ValueError:
        return {}
    return j if isinstance(j, dict) else {}


def _errors(r: httpx.Response) -> List[Dict[str, Any]]:
    return list(_body(r).get("errors") or [])


def _message(r: httpx.Response) -> str:
    return _body(r).get("message") or r.reason_phrase or "request failed"
