"""
                        Services Module

Business logic for the marketplace plus the external providers it talks to.
Providers follow the hybrid pattern: a Mock implementation for development
and a Real one for production, chosen by ``ENV_MODE``.

Services:
    - users: accounts, login and email verification
    - restaurants: restaurants, categories and menus
    - orders: order placement and status workflow
    - payments: promotion payments
    - uploads: image storage
    - notifications: SendGrid email delivery
    - gateway: Stripe payment verification
"""
