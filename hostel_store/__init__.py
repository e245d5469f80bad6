"""
Hostel store backend: students, catalog, sales and inventory ledger.
"""
__version__ = "1.0.0"
