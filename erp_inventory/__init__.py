"""
ERP Inventory Core
Package normalization and transformation-order execution
"""

__version__ = "1.0.0"
