# wholesale_cart/services/product_client.py
import requests

from wholesale_cart.domain.schemas import ProductRecord
from wholesale_cart.utils.retry import http_retry
from wholesale_cart.utils.settings import PRODUCT_SERVICE_URL
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Catalog collaborator: product + pricing records over HTTP."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: str) -> ProductRecord:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return ProductRecord.model_validate(resp.json())
