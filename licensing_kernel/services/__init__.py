"""Services for the licensing kernel (write side)."""

from licensing_kernel.services.catalog_service import (
    CatalogService,
    DiscountInfo,
    ProductInfo,
)
from licensing_kernel.services.contract_ledger import (
    ContractLedger,
    CreatedContract,
    RenewalOutcome,
)
from licensing_kernel.services.discount_resolver import DiscountResolver
from licensing_kernel.services.orchestrator import (
    EngineResult,
    LicensingOrchestrator,
    Quote,
    ResultStatus,
)
from licensing_kernel.services.payment_reconciler import (
    PaymentOutcome,
    PaymentReconciler,
    PaymentStatus,
)
from licensing_kernel.services.payment_writer import PaymentWriter

__all__ = [
    "CatalogService",
    "ContractLedger",
    "CreatedContract",
    "DiscountInfo",
    "DiscountResolver",
    "EngineResult",
    "LicensingOrchestrator",
    "PaymentOutcome",
    "PaymentReconciler",
    "PaymentStatus",
    "PaymentWriter",
    "ProductInfo",
    "Quote",
    "RenewalOutcome",
    "ResultStatus",
]
