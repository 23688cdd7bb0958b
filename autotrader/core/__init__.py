"""
The core package contains base application components.

This package includes the persistence components used by the database sink:
the Vehicle model and functionality for working with the database.

Modules:
    models: Data model definitions using SQLAlchemy ORM.
    database: Engine, sessions and schema initialization.
"""
