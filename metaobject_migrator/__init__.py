"""
Metaobject Migrator

Copies metaobject definitions and their metaobjects from one Shopify store
to another over the Admin GraphQL API.

Supports:
- Snapshotting a source store's definitions and metaobjects to disk
- Ordering definitions so referenced definitions are created first
- Deferring reference fields that close a cycle and adding them afterwards
- Rewriting product, collection, file and definition IDs between stores
- Idempotent metaobject upserts keyed by handle
"""

__version__ = "0.1.0"
