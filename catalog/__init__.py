"""
Catalog Search Engine
Product search, facets and attribute similarity over the relational catalog.
"""

__version__ = "0.1.0"
