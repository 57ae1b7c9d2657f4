"""
Licensing Kernel

A contract and payment lifecycle engine for software licenses with:
- Exact decimal pricing with time-bounded discounts and a recurring-client bonus
- Locked contract prices
- Append-only payment ledgers
- Renewal of expired, unpaid contracts
"""

__version__ = "0.1.0"
