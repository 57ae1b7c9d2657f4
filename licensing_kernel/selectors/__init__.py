"""Read-only query selectors for the licensing kernel."""

from licensing_kernel.selectors.catalog_selector import CatalogSelector
from licensing_kernel.selectors.client_selector import ClientSelector
from licensing_kernel.selectors.contract_selector import ContractSelector

__all__ = [
    "CatalogSelector",
    "ClientSelector",
    "ContractSelector",
]
