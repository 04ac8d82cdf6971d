"""
Database helpers shared by the services.

Usage
-----
Wrap every write together with the stats updates it triggers so both commit
or neither does::

    from utils.db_helpers import unit_of_work, get_or_404

    with unit_of_work():
        investment = get_or_404(Investment, investment_id)
        db.session.delete(investment)
        StatsEvents.on_investment_deleted(investment)
"""
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import event

from extensions import db
from utils.errors import APIError, NotFoundError


@contextmanager
def unit_of_work():
    """Commit the session on success; roll back and re-raise on any error."""
    try:
        yield db.session
        db.session.commit()
    except APIError as e:
        db.session.rollback()
        current_app.logger.info(f'Unit of work rejected: {e.message}')
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Unit of work aborted; session rolled back')
        raise


def get_or_404(model, record_id, label=None):
    """Fetch *model* by primary key or raise ``NotFoundError``."""
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(f'{label or model.__name__} not found')
    return record


def locked_query(model, **filters):
    """Return a ``SELECT ... FOR UPDATE`` query for rows matching *filters*.

    Row locks serialise concurrent writers on PostgreSQL.  SQLite ignores the
    clause; there every transaction opens with BEGIN IMMEDIATE (see
    ``enable_sqlite_write_locks``) so the read already holds the write lock.
    """
    return model.query.filter_by(**filters).with_for_update()


def enable_sqlite_write_locks(engine):
    """Open every SQLite transaction with ``BEGIN IMMEDIATE``.

    pysqlite defers BEGIN until the first write, so a read-modify-write could
    read a row another connection is about to change.  Taking the database
    write lock when the transaction starts makes ``locked_query`` reads
    serialise the way ``FOR UPDATE`` does on PostgreSQL.  No-op for other
    dialects.
    """
    if engine.dialect.name != 'sqlite':
        return

    @event.listens_for(engine, 'connect')
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def _begin_immediate(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def paginate(query, page=None, size=None):
    """
    Apply optional page/size pagination.

    Returns (items, count, total_pages).  Without a positive page and size the
    whole result is returned as a single page.
    """
    if page and size and page > 0 and size > 0:
        pagination = query.paginate(page=page, per_page=size, error_out=False)
        return pagination.items, pagination.total, pagination.pages
    items = query.all()
    return items, len(items), 1
