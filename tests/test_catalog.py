"""Tests for CatalogStore."""

from decimal import Decimal

import pytest

from cafepos.catalog import DEFAULT_MENU, CatalogStore
from cafepos.errors import (
    ConfirmationRequiredError,
    EmptyMenuError,
    InvalidPriceError,
    InvalidProductNameError,
    ProductNotFoundError,
)
from cafepos.utils import normalize_product_name


class TestNormalizeProductName:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("espresso", "Espresso"),
            ("  iced   LATTE ", "Iced latte"),
            ("MOKA", "Moka"),
            ("chai\tlatte", "Chai latte"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_product_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "\n"])
    def test_empty_raises(self, raw):
        with pytest.raises(InvalidProductNameError):
            normalize_product_name(raw)


class TestCatalogStore:
    """Tests for CatalogStore class."""

    def test_empty_by_default(self, catalog):
        assert catalog.list_products() == []

    def test_add_and_list(self, catalog):
        product = catalog.add_product("  flat WHITE ", "42.50")

        products = catalog.list_products()
        assert products == [product]
        assert product.name == "Flat white"
        assert product.price == Decimal("42.50")
        assert len(product.id) == 7

    def test_add_generates_unique_ids(self, catalog):
        ids = {catalog.add_product(f"item {i}", 10).id for i in range(20)}
        assert len(ids) == 20

    def test_add_invalid_price_writes_nothing(self, catalog):
        with pytest.raises(InvalidPriceError):
            catalog.add_product("Latte", "0")
        with pytest.raises(InvalidPriceError):
            catalog.add_product("Latte", "abc")

        assert catalog.list_products() == []

    def test_add_empty_name_writes_nothing(self, catalog):
        with pytest.raises(InvalidProductNameError):
            catalog.add_product("   ", 10)

        assert catalog.list_products() == []

    def test_get_product(self, catalog):
        product = catalog.add_product("Latte", 40)
        assert catalog.get_product(product.id) == product

    def test_get_product_not_found(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.get_product("missing")

    def test_edit_product(self, catalog):
        product = catalog.add_product("Latte", 40)
        edited = catalog.edit_product(product.id, "LATTE grande", "55")

        assert edited.id == product.id
        assert edited.name == "Latte grande"
        assert catalog.get_product(product.id).price == Decimal("55")

    def test_edit_missing_raises(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.edit_product("missing", "Latte", 40)

    def test_edit_invalid_keeps_product(self, catalog):
        product = catalog.add_product("Latte", 40)

        with pytest.raises(InvalidPriceError):
            catalog.edit_product(product.id, "Latte", -1)

        assert catalog.get_product(product.id) == product

    def test_delete_product(self, catalog):
        keep = catalog.add_product("Latte", 40)
        drop = catalog.add_product("Moka", 45)

        removed = catalog.delete_product(drop.id)

        assert removed == drop
        assert catalog.list_products() == [keep]

    def test_delete_missing_is_noop(self, catalog):
        catalog.add_product("Latte", 40)
        assert catalog.delete_product("missing") is None
        assert len(catalog.list_products()) == 1

    def test_search_is_case_insensitive(self, catalog):
        catalog.seed_defaults()

        names = [p.name for p in catalog.search("CA")]
        assert names == ["Cappuccino", "Americano"]

    def test_search_empty_returns_all(self, catalog):
        catalog.seed_defaults()
        assert len(catalog.search("")) == len(DEFAULT_MENU)

    def test_clear_requires_confirmation(self, catalog):
        catalog.seed_defaults()

        with pytest.raises(ConfirmationRequiredError):
            catalog.clear()

        assert len(catalog.list_products()) == len(DEFAULT_MENU)

    def test_clear(self, catalog):
        catalog.seed_defaults()

        assert catalog.clear(confirm=True) == len(DEFAULT_MENU)
        assert catalog.list_products() == []

    def test_clear_empty_menu_raises(self, catalog):
        with pytest.raises(EmptyMenuError):
            catalog.clear(confirm=True)

    def test_seed_defaults(self, catalog):
        products = catalog.seed_defaults()

        assert [p.id for p in products] == ["1", "2", "3", "4", "5"]
        assert products[0].name == "Espresso"
        assert products[0].price == Decimal("25")

    def test_seed_does_not_overwrite(self, catalog):
        catalog.add_product("Chai", 30)
        products = catalog.seed_defaults()

        assert [p.name for p in products] == ["Chai"]

    def test_seed_does_not_refill_cleared_menu(self, catalog):
        catalog.seed_defaults()
        catalog.clear(confirm=True)

        assert catalog.seed_defaults() == []

    def test_persists_to_file(self, file_storage):
        store = CatalogStore(file_storage)
        product = store.add_product("Latte", "40.5")

        reloaded = CatalogStore(file_storage).list_products()
        assert reloaded == [product]
        assert (file_storage.data_dir / "menu.json").exists()

    def test_malformed_product_is_skipped(self, catalog):
        catalog.storage.set(
            "menu",
            [{"id": "1", "name": "Espresso", "price": 25}, {"id": "2", "name": "Latte", "price": None}],
        )

        assert [p.name for p in catalog.list_products()] == ["Espresso"]
        assert catalog.search("lat") == []

        catalog.add_product("Chai", 30)

        assert [p["name"] for p in catalog.storage.get("menu")] == ["Espresso", "Chai"]
