"""
Example app combining a declarative and an imperative module.

Serve it with any ASGI server (``uvicorn examples.shop_app:api``) or list its
routes with ``advance-api routes examples.shop_app:api``.
"""

from __future__ import annotations

from advance_api import create_advance_api

PRODUCTS = {"1": {"id": "1", "name": "Notebook", "price": 4.5}}


def list_products(request, res):
    res.success(list(PRODUCTS.values()))


def show_product(request, res):
    product = PRODUCTS.get(request.path_params["id"])
    if product is None:
        res.error("Product not found", 404)
        return
    res.success(product)


def orders_module(definer):
    orders = {}

    async def create_order(request, res):
        body = await request.json()
        order_id = str(len(orders) + 1)
        orders[order_id] = {"id": order_id, **body}
        res.success(orders[order_id])

    def delete_order(request, res):
        res.success(orders.pop(request.path_params["id"], None))

    definer.post("/", create_order, "Create an order", params={"items": "list of product ids"})
    definer.delete("/{id}", delete_order, "Cancel an order")


def setup(utils):
    return [
        {
            "type": "object",
            "base": "/products",
            "endpoints": [
                {
                    "path": "/",
                    "method": "GET",
                    "handler": list_products,
                    "description": "List products",
                    "response": {"code": 200, "data": [PRODUCTS["1"]], "message": "success"},
                },
                {
                    "path": "/{id}",
                    "method": "GET",
                    "handler": show_product,
                    "description": "Show one product",
                    "params": {"id": "product id"},
                },
            ],
        },
        {"type": "direct", "base": "/orders", "build": orders_module},
    ]


api = create_advance_api(setup=setup, plugins=["logging"], title="Shop API")
