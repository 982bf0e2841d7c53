"""Concrete implementations for business-data adapters.

Every adapter answers the same three read-only lookups. A missing record is
``None``; only connectivity or authentication failures raise ``AdapterError``.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, sessionmaker

from .errors import AdapterError
from .models import OrderDetails, OrderItem, ProductDetails, Record, RefundDetails
from .tables import Base, Order, OrderLine, Product, Refund

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Record)


class DataAdapter(ABC):
    """Interface for reading order, product and refund records."""

    @abstractmethod
    def fetch_order_info(self, order_id: str) -> Optional[OrderDetails]:
        """Returns the order with its line items, or None if it does not exist."""
        pass

    @abstractmethod
    def fetch_product_info(self, product_id: str) -> Optional[ProductDetails]:
        """Returns the product, or None if it does not exist."""
        pass

    @abstractmethod
    def fetch_refund_info(self, order_id: str) -> Optional[RefundDetails]:
        """Returns the refund filed against an order, or None."""
        pass


class InMemory(DataAdapter):
    """Serves records from dictionaries; used for demos and tests."""

    def __init__(
        self,
        orders: Iterable[OrderDetails] = (),
        products: Iterable[ProductDetails] = (),
        refunds: Iterable[RefundDetails] = (),
    ):
        self._orders: Dict[str, OrderDetails] = {str(o.order_id): o for o in orders}
        self._products: Dict[str, ProductDetails] = {str(p.product_id): p for p in products}
        self._refunds: Dict[str, RefundDetails] = {str(r.order_id): r for r in refunds}

    def fetch_order_info(self, order_id):
        return self._orders.get(str(order_id))

    def fetch_product_info(self, product_id):
        return self._products.get(str(product_id))

    def fetch_refund_info(self, order_id):
        return self._refunds.get(str(order_id))


class SQLStore(DataAdapter):
    """Reads records straight from the shop's managed SQL database.

    Parameters
    ----------
    url : str
        SQLAlchemy database URL, e.g. ``postgresql+psycopg://...``.
    engine : sqlalchemy.engine.Engine, optional
        A pre-built engine; takes precedence over ``url``.
    """

    def __init__(self, url: str = "sqlite:///chatdesk.db", engine: Optional[Engine] = None):
        self.engine = engine if engine is not None else create_engine(url)
        self._session = sessionmaker(self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        """Creates the tables this adapter reads, if they are missing."""
        with self._guard("schema"):
            Base.metadata.create_all(self.engine)

    @contextmanager
    def _guard(self, table: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("Database lookup on %s failed: %s", table, e)
            raise AdapterError(f"Database lookup on {table} failed", source="sql") from e

    def fetch_order_info(self, order_id):
        stmt = (
            select(Order)
            .where(Order.order_id == str(order_id))
            .options(joinedload(Order.items).joinedload(OrderLine.product))
        )
        with self._guard("orders"), self._session() as session:
            order = session.scalars(stmt).unique().first()
            if order is None:
                return None
            return OrderDetails(
                order_id=order.order_id,
                status=order.status,
                total=order.total,
                created_at=order.created_at.isoformat() if order.created_at else "",
                items=[
                    OrderItem(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        price=line.price,
                        name=line.product.name if line.product else None,
                        description=line.product.description if line.product else None,
                    )
                    for line in order.items
                ],
            )

    def fetch_product_info(self, product_id):
        with self._guard("products"), self._session() as session:
            product = session.get(Product, str(product_id))
            if product is None:
                return None
            return ProductDetails(
                product_id=product.product_id,
                name=product.name,
                description=product.description,
                price=product.price,
                stock=product.stock,
            )

    def fetch_refund_info(self, order_id):
        stmt = select(Refund).where(Refund.order_id == str(order_id)).order_by(Refund.id.desc())
        with self._guard("refunds"), self._session() as session:
            refund = session.scalars(stmt).first()
            if refund is None:
                return None
            return RefundDetails(
                order_id=refund.order_id,
                amount=refund.amount,
                status=refund.status,
                reason=refund.reason,
            )


class RestAPI(DataAdapter):
    """Reads records from any service implementing the shop REST contract.

    ``GET /api/orders/:id``, ``GET /api/products/:id`` and
    ``GET /api/refunds/order/:id``, all with bearer-token auth. A 404 or an
    empty body means "not found".

    Parameters
    ----------
    base_url : str
        Service root; a trailing slash is ignored.
    api_key : str
        Bearer token sent with every request.
    fail_soft : bool, default=True
        When true, connectivity and auth failures are logged and reported as
        None, exactly like a missing record. When false they raise
        ``AdapterError``.
    client : httpx.Client, optional
        Pre-configured client, e.g. one using a mock transport.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        fail_soft: bool = True,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.fail_soft = fail_soft
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def fetch_order_info(self, order_id):
        return self._fetch(f"/api/orders/{quote(str(order_id), safe='')}", OrderDetails)

    def fetch_product_info(self, product_id):
        return self._fetch(
            f"/api/products/{quote(str(product_id), safe='')}", ProductDetails
        )

    def fetch_refund_info(self, order_id):
        return self._fetch(
            f"/api/refunds/order/{quote(str(order_id), safe='')}", RefundDetails
        )

    def _fetch(self, endpoint: str, model: Type[RecordT]) -> Optional[RecordT]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self._client.get(f"{self.base_url}{endpoint}", headers=headers)
        except httpx.HTTPError as e:
            return self._fail(f"Request to {endpoint} failed: {e}", e)

        if response.status_code == 404 or (response.is_success and not response.content.strip()):
            return None
        if not response.is_success:
            return self._fail(
                f"API request to {endpoint} failed: "
                f"{response.status_code} {response.reason_phrase}"
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            return self._fail(f"API response from {endpoint} is not JSON", e)
        if not payload:
            return None
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            return self._fail(f"API response from {endpoint} has an unexpected shape", e)

    def _fail(self, message: str, cause: Optional[Exception] = None) -> None:
        if self.fail_soft:
            logger.warning("%s; reporting the record as not found", message)
            return None
        raise AdapterError(message, source="rest") from cause
