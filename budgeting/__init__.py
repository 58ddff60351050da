"""
Personal Budgeting - Source Package

A personal budgeting assistant: accounts, user-defined category
taxonomies, transactions entered by hand, by voice or from a receipt
photo, and spending dashboards.

DESIGN PRINCIPLES:
1. Parsing suggests → Human confirms → System saves
2. Text understanding runs offline and never raises
3. No silent corrections
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Budgeting Team"
