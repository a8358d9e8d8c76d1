"""
Stock monitoring bot for MediaMarkt/Saturn storefronts.
"""

__version__ = "1.0.0"
