# Overview: Row-locking helper for read-modify-write on stock rows.


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Product.version_id still turns a lost update into StaleDataError there.
    """
    return query.with_for_update()
