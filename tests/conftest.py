"""Shared catalog fixtures."""
from __future__ import annotations

import pytest

from product_search.models import ProductRecord


@pytest.fixture
def widgets() -> list[ProductRecord]:
    return [
        ProductRecord(id="1", name="Widget A", price=100),
        ProductRecord(id="2", name="Widget B", price=50),
    ]


@pytest.fixture
def store() -> list[ProductRecord]:
    return [
        ProductRecord(id="1", name="Widget A", price=100),
        ProductRecord(id="2", name="Widget B", price=50),
        ProductRecord(id="3", name="Gadget", description="A widget-free gadget", price=30),
        ProductRecord(id="10", name="Blue Widget", description="widget for blue things"),
        ProductRecord(id="21", name="Sony Bravia TV", description="4K television", price=598, brand="Sony", category="TV"),
    ]
