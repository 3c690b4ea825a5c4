"""
                Eats Delivery API

Backend for a three-sided food delivery marketplace: clients order,
restaurant owners cook, delivery drivers carry.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
