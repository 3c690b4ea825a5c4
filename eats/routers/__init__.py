"""
HTTP routes, one per marketplace operation.
"""

from eats.routers import orders, payments, restaurants, uploads, users

all_routers = [
    users.router,
    restaurants.router,
    restaurants.categories_router,
    restaurants.dishes_router,
    orders.router,
    payments.router,
    uploads.router,
]

__all__ = ["all_routers"]
