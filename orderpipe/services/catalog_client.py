# orderpipe/services/catalog_client.py
from decimal import Decimal

import requests
from requests import RequestException

from orderpipe.domain.errors import CatalogUnavailable
from orderpipe.services.catalog_gateway import MenuInfo, StoreInfo
from orderpipe.utils.retry import http_retry
from orderpipe.utils.settings import CATALOG_SERVICE_URL, CATALOG_TIMEOUT_SECONDS
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)


class HttpCatalogClient:
    """
    Catalog gateway backed by the catalog HTTP service.
    404 means the record does not exist; transport errors and 5xx are
    retried and then surfaced as CatalogUnavailable. Any other 4xx is
    surfaced as CatalogUnavailable at once.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None, session=None):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else CATALOG_TIMEOUT_SECONDS
        self.http = session or requests.Session()

    @http_retry()
    def _fetch(self, path: str) -> dict | None:
        url = f"{self.base_url}{path}"
        logger.info(f"CatalogClient GET {url}")

        resp = self.http.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        # other 4xx will not get better on retry
        if 400 <= resp.status_code < 500:
            raise CatalogUnavailable(f"Catalog rejected {path}: HTTP {resp.status_code}")
        resp.raise_for_status()
        return resp.json()

    def _get(self, path: str) -> dict | None:
        try:
            return self._fetch(path)
        except RequestException as e:
            logger.error(f"Catalog request {path} failed: {e}")
            raise CatalogUnavailable(f"Catalog service unavailable: {e}") from e

    def get_store(self, store_id: int) -> StoreInfo | None:
        data = self._get(f"/stores/{store_id}")
        if data is None:
            return None
        return StoreInfo(
            id=data["id"],
            owner_id=data["owner_id"],
            name=data["name"],
            image_url=data.get("image_url"),
            delivery_fee=Decimal(str(data["delivery_fee"])),
            is_deleted=bool(data.get("is_deleted", False)),
            is_open=bool(data.get("is_open", True)),
        )

    def get_menu(self, menu_id: int) -> MenuInfo | None:
        data = self._get(f"/menus/{menu_id}")
        if data is None:
            return None
        return MenuInfo(
            id=data["id"],
            store_id=data["store_id"],
            name=data["name"],
            description=data.get("description"),
            image_url=data.get("image_url"),
            price=Decimal(str(data["price"])),
            is_deleted=bool(data.get("is_deleted", False)),
            is_available=bool(data.get("is_available", True)),
        )
