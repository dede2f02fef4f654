"""
Registrar service wiring

Builds one VersionedRecordStore and one EditWorkflow per table on top of
the configured backing store, and owns the storage connection.
"""

import logging
from typing import Dict, Optional

import pymysql

from contoso.concurrency.conflict_resolver import ConflictResolver
from contoso.concurrency.edit_workflow import EditWorkflow
from contoso.entities import DEPARTMENT, INSTRUCTOR, SCHEMAS, STUDENT, full_name
from contoso.store.base.errors import StorageUnavailable
from contoso.store.base.record_io import RecordIO
from contoso.store.impl.memory_record_io import InMemoryRecordIO, VersionClock
from contoso.store.impl.mysql_record_io import MySQLRecordIO
from contoso.store.versioned_store import VersionedRecordStore
from contoso.web.config import AppConfig

logger = logging.getLogger(__name__)


class Registrar:
    """
    Holds the per-table stores and edit workflows.

    Tables: departments, students, instructors.
    """

    def __init__(self, record_ios: Dict[str, RecordIO], config: AppConfig, conn=None):
        self.config = config
        self.conn = conn
        self.stores: Dict[str, VersionedRecordStore] = {
            table: VersionedRecordStore(record_io=io) for table, io in record_ios.items()
        }

        self.departments = EditWorkflow(
            schema=DEPARTMENT,
            store=self.stores[DEPARTMENT.table],
            resolver=ConflictResolver(
                DEPARTMENT,
                reference_names={"instructor_id": self.instructor_name},
                date_format=config.date_display_format,
                currency_symbol=config.currency_symbol,
            ),
            reference_exists=self.reference_exists,
        )
        self.students = EditWorkflow(
            schema=STUDENT,
            store=self.stores[STUDENT.table],
            resolver=ConflictResolver(
                STUDENT,
                date_format=config.date_display_format,
                currency_symbol=config.currency_symbol,
            ),
        )
        self.instructors = EditWorkflow(
            schema=INSTRUCTOR,
            store=self.stores[INSTRUCTOR.table],
            resolver=ConflictResolver(
                INSTRUCTOR,
                date_format=config.date_display_format,
                currency_symbol=config.currency_symbol,
            ),
        )

    def reference_exists(self, table: str, record_id: int) -> bool:
        return self.stores[table].read(record_id).ok

    def instructor_name(self, instructor_id: Optional[int]) -> Optional[str]:
        if instructor_id is None:
            return None
        instructor = self.instructors.read(instructor_id)
        if instructor is None:
            return None
        return full_name(instructor)

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logger.info("MySQL connection closed")


def build_registrar(config: AppConfig) -> Registrar:
    """Create the registrar for the configured storage backend."""
    backend = config.storage_backend.lower()

    if backend == "memory":
        clock = VersionClock()
        record_ios = {table: InMemoryRecordIO(table, clock=clock) for table in SCHEMAS}
        logger.info("Registrar using in-memory storage")
        return Registrar(record_ios, config)

    if backend == "mysql":
        try:
            conn = pymysql.connect(
                host=config.mysql_host,
                port=config.mysql_port,
                user=config.mysql_user,
                password=config.mysql_password,
                database=config.mysql_database,
                autocommit=True,
                cursorclass=pymysql.cursors.DictCursor,
            )
        except pymysql.err.OperationalError as e:
            logger.error(
                "MySQL connection failed",
                extra={"host": config.mysql_host, "port": config.mysql_port},
            )
            raise StorageUnavailable("MySQL is unreachable", cause=e) from e

        record_ios = {
            table: MySQLRecordIO(conn=conn, table=table, columns=schema.field_names)
            for table, schema in SCHEMAS.items()
        }
        logger.info(
            f"Registrar using MySQL storage at {config.mysql_host}:{config.mysql_port}"
        )
        return Registrar(record_ios, config, conn=conn)

    raise ValueError(f"Unknown storage backend: {config.storage_backend}")
