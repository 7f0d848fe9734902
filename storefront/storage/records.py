"""
Record codecs between Redis hashes and ledger models.

Redis hands every hash field back as a string. Numbers are parsed here, at the
adapter boundary, and a value that does not parse raises CorruptRecordError
instead of being coerced.
"""
import json
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from pydantic import ValidationError

from storefront.domain.errors import CorruptRecordError
from storefront.domain.models import CartLine, Order, OrderLine, Product


def _field(data: Dict[str, str], name: str, record: str) -> str:
    try:
        return data[name]
    except KeyError:
        raise CorruptRecordError(record, f"missing field {name!r}") from None


def parse_int(raw: str, field: str, record: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise CorruptRecordError(record, f"{field} is not an integer: {raw!r}") from None


def parse_decimal(raw: str, field: str, record: str) -> Decimal:
    try:
        value = Decimal(raw)
    except (TypeError, InvalidOperation):
        raise CorruptRecordError(record, f"{field} is not a number: {raw!r}") from None
    if not value.is_finite():
        raise CorruptRecordError(record, f"{field} is not a number: {raw!r}")
    return value


def encode_product(product: Product) -> Dict[str, str]:
    fields = {
        "name": product.name,
        "price": str(product.price),
        "stock": str(product.stock),
    }
    if product.initial_stock is not None:
        fields["initial_stock"] = str(product.initial_stock)
    return fields


def decode_product(product_id: str, data: Dict[str, str], record: str) -> Product:
    initial: Optional[int] = None
    if "initial_stock" in data:
        initial = parse_int(data["initial_stock"], "initial_stock", record)
    try:
        return Product(
            id=product_id,
            name=_field(data, "name", record),
            price=parse_decimal(_field(data, "price", record), "price", record),
            stock=parse_int(_field(data, "stock", record), "stock", record),
            initial_stock=initial,
        )
    except ValidationError as e:
        raise CorruptRecordError(record, str(e)) from e


def encode_cart_line(line: CartLine) -> Dict[str, str]:
    return {
        "name": line.name,
        "price": str(line.price),
        "quantity": str(line.quantity),
    }


def decode_cart_line(
    user_id: str, product_id: str, data: Dict[str, str], record: str
) -> CartLine:
    try:
        return CartLine(
            user_id=user_id,
            product_id=product_id,
            name=_field(data, "name", record),
            price=parse_decimal(_field(data, "price", record), "price", record),
            quantity=parse_int(_field(data, "quantity", record), "quantity", record),
        )
    except ValidationError as e:
        raise CorruptRecordError(record, str(e)) from e


def encode_order(order: Order) -> Dict[str, str]:
    items = [item.model_dump(mode="json") for item in order.items]
    return {
        "user_id": order.user_id,
        "timestamp": str(order.timestamp),
        "items": json.dumps(items),
        "total": str(order.total),
    }


def decode_order(data: Dict[str, str], record: str) -> Order:
    try:
        raw_items = json.loads(_field(data, "items", record))
    except json.JSONDecodeError as e:
        raise CorruptRecordError(record, f"items is not valid JSON: {e}") from e
    if not isinstance(raw_items, list):
        raise CorruptRecordError(record, "items is not a list")

    try:
        items: List[OrderLine] = [OrderLine.model_validate(item) for item in raw_items]
        return Order(
            user_id=_field(data, "user_id", record),
            timestamp=parse_int(_field(data, "timestamp", record), "timestamp", record),
            items=items,
            total=parse_decimal(_field(data, "total", record), "total", record),
        )
    except ValidationError as e:
        raise CorruptRecordError(record, str(e)) from e
