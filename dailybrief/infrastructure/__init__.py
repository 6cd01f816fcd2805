"""Storage infrastructure: database backends and schema management."""
