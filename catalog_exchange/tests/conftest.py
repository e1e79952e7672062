"""Shared fixtures for the catalog exchange test suite."""

import logging

import pytest

from catalog_exchange.logging_config import ROOT_LOGGER_NAME
from catalog_exchange.models import Product, Snapshot, Variant
from catalog_exchange.schema import column_names


@pytest.fixture
def shirt_snapshot():
    """One product with one variant and one image."""
    return Snapshot.from_products([
        Product(
            id="1",
            title="Shirt",
            price=1000,
            quantity=5,
            image_urls=["a.jpg"],
            variants=[Variant(id="10", product_id="1", sku="S-1", price=1000, stock=5)],
        )
    ])


@pytest.fixture
def catalog_snapshot():
    """Several products, one without variants, with structured fields filled in."""
    return Snapshot.from_products([
        Product(
            id="1",
            title="Lawn Suit",
            description='3-piece, "printed", with dupatta',
            price=4500,
            discounted_price=3999.5,
            quantity=12,
            status="In Stock",
            category_id="21",
            attributes={"Fabric": "Lawn", "Pattern": "Printed", "Pieces": 3},
            image_urls=["https://cdn.example.com/1a.jpg", "https://cdn.example.com/1b.jpg"],
            video_url="https://cdn.example.com/1.mp4",
            variants=[
                Variant(id="100", product_id="1", color="Red", size="S", price=4500, stock=4, sku="LS-R-S"),
                Variant(id="101", product_id="1", color="Red", size="M", price=4500, stock=8, sku="LS-R-M"),
            ],
        ),
        Product(
            id="2",
            title="Ceramic Mug",
            price=800,
            quantity=0,
            status="Out of Stock",
            category_id="7",
            attributes={"Material": "Ceramic"},
        ),
        Product(
            id="3",
            title="Earbuds, wireless",
            description="Line one\nLine two",
            price=2999,
            quantity=30,
            status="In Stock",
            category_id="44",
            attributes={"Connectivity Technology": "Bluetooth", "Bluetooth Version": "5.3"},
            image_urls=["https://cdn.example.com/3.jpg"],
            variants=[
                Variant(id="300", product_id="3", color="Black", size="One Size", price=2999, stock=30, sku="EB-BLK"),
            ],
        ),
    ])


@pytest.fixture
def product_header():
    return column_names("product")


@pytest.fixture
def variant_header():
    return column_names("variant")


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo any setup_logging() a test triggered (e.g. through the CLI)."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
