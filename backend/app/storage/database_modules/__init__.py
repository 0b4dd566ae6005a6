"""
Database modules for the Dynamic Table CRUD API storage layer.

This package holds the table metadata discovery and the generic CRUD
operations that the Database class delegates to.
"""
