"""
SaleRadar: grocery-list offer recommendations
"""

__version__ = "0.1.0"
