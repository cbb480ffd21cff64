"""Feed ingestion layer.

This package decodes raw tabular downloads, fetches them from Redash,
and materializes normalized feed artifacts.
"""
