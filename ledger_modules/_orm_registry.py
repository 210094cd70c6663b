"""
Module ORM Registry (``ledger_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
holds the full schema before tables are created.

Usage
-----
``ledger_kernel.db.engine.create_tables()`` and ``tests/conftest.py`` both
go through ``import_all_orm_models()``.
"""


def import_all_orm_models() -> None:
    """Import the reference tables and every ``ledger_modules.*.orm`` module.

    Idempotent: repeated calls are harmless.
    """
    # Reference tables first; module tables hold foreign keys to them
    import ledger_kernel.models.reference  # noqa: F401
    import ledger_modules.allowances.orm  # noqa: F401
    import ledger_modules.inventory.orm  # noqa: F401
    import ledger_modules.payroll.orm  # noqa: F401
    import ledger_modules.sales.orm  # noqa: F401


def create_all_tables(engine=None) -> None:
    """Register all ORM models and create every table."""
    from ledger_kernel.db.engine import create_tables

    create_tables(engine)
