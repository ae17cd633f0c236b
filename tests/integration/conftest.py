from __future__ import annotations

import pytest

ORDERS_URL = "/api/v1/orders/"
CART_PRODUCTS_URL = "/api/v1/cart/products/"


@pytest.fixture()
def fill_cart(client_for):
    """Put ``(product, quantity)`` pairs in the customer's cart over HTTP."""

    def _fill(customer, *lines):
        client = client_for(customer)
        for product, quantity in lines:
            response = client.post(
                CART_PRODUCTS_URL,
                {"product_id": str(product.id), "quantity": quantity},
                format="json",
            )
            assert response.status_code == 200, response.json()
        return client

    return _fill


@pytest.fixture()
def place_order(fill_cart):
    """Fill the cart and commit it; returns the created order payload."""

    def _place(customer, *lines):
        client = fill_cart(customer, *lines)
        response = client.post(ORDERS_URL)
        assert response.status_code == 201, response.json()
        return response.json()

    return _place
