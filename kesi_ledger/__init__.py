"""
Kesi Ledger - Source Package

A personal finance tracker for recording income and expense
transactions paid through mobile wallets (KPay, WaveMoney).

DESIGN PRINCIPLES:
1. Money is Decimal, never float
2. Service fees are snapshotted at creation time
3. Balances are always recomputed from the full transaction list
4. Persistence failures degrade, they never crash the UI
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Kesi Ledger Team"
