"""
Order analytics for storefront merchant dashboards
"""
__version__ = '1.0.0'
