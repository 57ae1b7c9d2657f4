"""ORM models for the licensing kernel."""

from licensing_kernel.models.client import Client
from licensing_kernel.models.contract import Contract
from licensing_kernel.models.discount import Discount
from licensing_kernel.models.payment import Payment
from licensing_kernel.models.product import Product

__all__ = [
    "Client",
    "Contract",
    "Discount",
    "Payment",
    "Product",
]
