"""Menu (product catalog) storage for cafepos."""

import logging
from decimal import Decimal

from . import config
from .errors import ConfirmationRequiredError, EmptyMenuError, ProductNotFoundError
from .models import Product, _generate_product_id
from .money import parse_price
from .storage import Storage, decode_records, load_list
from .utils import normalize_product_name

logger = logging.getLogger(__name__)

DEFAULT_MENU: list[Product] = [
    Product(id="1", name="Espresso", price=Decimal("25")),
    Product(id="2", name="Cappuccino", price=Decimal("35")),
    Product(id="3", name="Latte", price=Decimal("40")),
    Product(id="4", name="Americano", price=Decimal("30")),
    Product(id="5", name="Moka", price=Decimal("45")),
]


class CatalogStore:
    """Manages the list of purchasable products."""

    def __init__(self, storage: Storage, key: str = config.MENU_KEY):
        self.storage = storage
        self.key = key

    def _load(self) -> list[Product]:
        return decode_records(self.key, load_list(self.storage, self.key), Product.from_dict)

    def _save(self, products: list[Product]) -> None:
        self.storage.set(self.key, [p.to_dict() for p in products])

    def list_products(self) -> list[Product]:
        """List all products in menu order."""
        return self._load()

    def search(self, text: str) -> list[Product]:
        """Products whose name contains text, case-insensitively."""
        needle = (text or "").lower()
        return [p for p in self._load() if needle in p.name.lower()]

    def get_product(self, product_id: str) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If the product doesn't exist.
        """
        for p in self._load():
            if p.id == product_id:
                return p
        raise ProductNotFoundError(product_id)

    def add_product(self, name: str, price: int | float | str | Decimal) -> Product:
        """
        Add a new product.

        Args:
            name: Display name (normalized before saving).
            price: Price greater than 0; strings are cleaned to digits and '.'.

        Returns:
            The created Product.

        Raises:
            ValidationError: If the name is empty or the price is invalid.
        """
        product_name = normalize_product_name(name)
        product_price = parse_price(price)

        with self.storage.lock():
            products = self._load()
            existing_ids = {p.id for p in products}
            product_id = _generate_product_id()
            while product_id in existing_ids:
                product_id = _generate_product_id()

            product = Product(id=product_id, name=product_name, price=product_price)
            products.append(product)
            self._save(products)

        logger.info("Added product %s (%s)", product.id, product.name)
        return product

    def edit_product(
        self, product_id: str, name: str, price: int | float | str | Decimal
    ) -> Product:
        """
        Replace a product's name and price.

        Orders already submitted keep their own copy of the product.

        Raises:
            ValidationError: If the name is empty or the price is invalid.
            ProductNotFoundError: If the product doesn't exist.
        """
        product_name = normalize_product_name(name)
        product_price = parse_price(price)

        with self.storage.lock():
            products = self._load()
            for i, p in enumerate(products):
                if p.id == product_id:
                    products[i] = Product(id=p.id, name=product_name, price=product_price)
                    self._save(products)
                    return products[i]

        raise ProductNotFoundError(product_id)

    def delete_product(self, product_id: str) -> Product | None:
        """Remove a product. Returns the removed product, or None if absent."""
        with self.storage.lock():
            products = self._load()
            for i, p in enumerate(products):
                if p.id == product_id:
                    removed = products.pop(i)
                    self._save(products)
                    return removed

        logger.warning("Product %s not in menu, nothing to delete", product_id)
        return None

    def clear(self, confirm: bool = False) -> int:
        """
        Delete every product.

        Args:
            confirm: Must be True; clearing the menu can't be undone.

        Returns:
            Number of products removed.

        Raises:
            ConfirmationRequiredError: If confirm is False.
            EmptyMenuError: If the menu has no products.
        """
        if not confirm:
            raise ConfirmationRequiredError("delete all products")

        with self.storage.lock():
            products = self._load()
            if not products:
                raise EmptyMenuError()
            self._save([])

        logger.info("Cleared menu (%d products)", len(products))
        return len(products)

    def seed_defaults(self) -> list[Product]:
        """
        Write the default café menu if no menu has been saved yet.

        Returns:
            The current menu (seeded or pre-existing).
        """
        with self.storage.lock():
            if self.storage.get(self.key) is None:
                self._save(DEFAULT_MENU)
                logger.info("Seeded default menu with %d products", len(DEFAULT_MENU))
            return self._load()
