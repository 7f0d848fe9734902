"""
Tests for the cart ledger.

Every cart mutation must move stock and reservations together.
"""
from decimal import Decimal

import pytest

from storefront.core import CartLedger, ProductCatalog
from storefront.domain.errors import (
    CartItemNotFoundError,
    InsufficientStockError,
    InvalidInputError,
    ProductNotFoundError,
)


class TestAddItem:
    """Test suite for reserving stock with add_item."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_add_reserves_stock(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        line = await cart.add_item("alice", "P", 4)

        assert line.quantity == 4
        assert line.name == "Pencil"
        assert line.price == Decimal("2.50")
        assert (await seeded_catalog.get_product("P")).stock == 6

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_add_uses_hints_for_snapshot(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        line = await cart.add_item("alice", "P", 1, name_hint="Red pencil", price_hint="2.25")

        assert line.name == "Red pencil"
        assert line.price == Decimal("2.25")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_repeated_add_increases_line_and_keeps_snapshot(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 2, price_hint=2)
        line = await cart.add_item("alice", "P", 3, price_hint=99)

        assert line.quantity == 5
        assert line.price == Decimal("2")
        assert (await seeded_catalog.get_product("P")).stock == 5
        assert len(await cart.list_items("alice")) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_add_entire_stock(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "S", 1)
        assert (await seeded_catalog.get_product("S")).stock == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_add_more_than_stock_fails_without_effect(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "Q", 2)

        with pytest.raises(InsufficientStockError):
            await cart.add_item("alice", "Q", 4)

        assert (await seeded_catalog.get_product("Q")).stock == 3
        lines = await cart.list_items("alice")
        assert [(line.product_id, line.quantity) for line in lines] == [("Q", 2)]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_add_unknown_product(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        with pytest.raises(ProductNotFoundError):
            await cart.add_item("alice", "nope", 1)
        assert await cart.list_items("alice") == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "quantity, price_hint",
        [(0, None), (-3, None), (1.5, None), ("many", None), (1, -2), (1, "free")],
    )
    async def test_add_rejects_invalid_input(
        self,
        seeded_catalog: ProductCatalog,
        cart: CartLedger,
        quantity: object,
        price_hint: object,
    ) -> None:
        with pytest.raises(InvalidInputError):
            await cart.add_item("alice", "P", quantity, price_hint=price_hint)
        assert (await seeded_catalog.get_product("P")).stock == 10


class TestQuantityUpdates:
    """Test suite for increase/decrease/remove."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_increase_quantity(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 1)
        line = await cart.increase_quantity("alice", "P")

        assert line.quantity == 2
        assert (await seeded_catalog.get_product("P")).stock == 8

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_increase_beyond_stock_fails(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "S", 1)

        with pytest.raises(InsufficientStockError):
            await cart.increase_quantity("alice", "S")

        assert (await cart.list_items("alice"))[0].quantity == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_increase_missing_line(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        with pytest.raises(CartItemNotFoundError):
            await cart.increase_quantity("alice", "P")
        assert (await seeded_catalog.get_product("P")).stock == 10

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_decrease_quantity(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 3)
        line = await cart.decrease_quantity("alice", "P")

        assert line is not None
        assert line.quantity == 2
        assert (await seeded_catalog.get_product("P")).stock == 8

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_decrease_to_zero_deletes_line(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 1)

        assert await cart.decrease_quantity("alice", "P") is None
        assert await cart.list_items("alice") == []
        assert (await seeded_catalog.get_product("P")).stock == 10

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_decrease_past_zero_returns_only_reserved(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        """Stock never grows beyond what the line actually reserved."""
        await cart.add_item("alice", "P", 2)

        assert await cart.decrease_quantity("alice", "P", delta=5) is None
        assert (await seeded_catalog.get_product("P")).stock == 10

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_decrease_missing_line(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        with pytest.raises(CartItemNotFoundError):
            await cart.decrease_quantity("alice", "P")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_add_then_remove_restores_stock(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 3)

        assert await cart.remove_item("alice", "P") == 3
        assert (await seeded_catalog.get_product("P")).stock == 10
        assert await cart.list_items("alice") == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_remove_missing_line(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        with pytest.raises(CartItemNotFoundError):
            await cart.remove_item("alice", "P")


class TestClearAndList:
    """Test suite for clear_cart, list_items and cart_total."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_clear_cart_returns_all_reservations(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 4)
        await cart.add_item("alice", "Q", 2)

        assert await cart.clear_cart("alice") == 6
        assert await cart.list_items("alice") == []
        assert (await seeded_catalog.get_product("P")).stock == 10
        assert (await seeded_catalog.get_product("Q")).stock == 5

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_clear_empty_cart_is_a_no_op(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        assert await cart.clear_cart("nobody") == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_clear_leaves_other_users_alone(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "P", 1)
        await cart.add_item("bob", "P", 2)

        await cart.clear_cart("alice")

        lines = await cart.list_items("bob")
        assert [(line.product_id, line.quantity) for line in lines] == [("P", 2)]
        assert (await seeded_catalog.get_product("P")).stock == 8

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_list_items_is_ordered_by_product(
        self, seeded_catalog: ProductCatalog, cart: CartLedger
    ) -> None:
        await cart.add_item("alice", "S", 1)
        await cart.add_item("alice", "P", 1)
        await cart.add_item("alice", "Q", 1)

        assert [line.product_id for line in await cart.list_items("alice")] == ["P", "Q", "S"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_cart_total(self, seeded_catalog: ProductCatalog, cart: CartLedger) -> None:
        await cart.add_item("alice", "P", 4)
        await cart.add_item("alice", "Q", 2)

        assert await cart.cart_total("alice") == Decimal("18.00")
        assert await cart.cart_total("bob") == Decimal("0")
