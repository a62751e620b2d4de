# storefront/api/__init__.py
from storefront.api.routers import carts, catalog, guest_cart, health, orders

ROUTERS = (
    health.router,
    catalog.router,
    carts.router,
    guest_cart.router,
    orders.router,
)
