"""
Money Tracker - Source Package

A personal finance tracker: accounts, income and expense transactions,
a stock portfolio, aggregate reports and an AI-generated summary.

DESIGN PRINCIPLES:
1. Balances are derived from transactions, never edited behind their back
2. Validate before writing
3. Quote lookups are best effort and never break a batch
4. Every balance-changing step is auditable
5. Storage and identity providers are swappable
"""

__version__ = "1.0.0"
__author__ = "Money Tracker Team"
