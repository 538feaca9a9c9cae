"""
Campus Order - food ordering backend for campus delivery
"""

__version__ = "1.0.0"
