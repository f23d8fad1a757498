"""
Dedup gate: idempotent storage of extracted job records.

Every record is inserted with ON CONFLICT (link) DO NOTHING. The affected-row
count of each insert tells an insert (1) from a duplicate link (0). A batch
runs in one transaction with a savepoint per record, so one bad record
does not abort its siblings.

Failure policy: per-record integrity/data errors are counted as `failed`;
a hard database error rolls the whole batch back and is logged, and the
caller sees zero counts instead of an exception.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from jobcrawl.database import Database
from jobcrawl.exceptions import StorageTransactionFailure
from jobcrawl.models import Job
from jobcrawl.schemas import RawJobRecord

logger = logging.getLogger(__name__)

INSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class PersistResult:
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.duplicates + self.failed


def insert_ignoring_duplicates(dialect: str):
    """INSERT INTO jobs ... ON CONFLICT (link) DO NOTHING for the given dialect."""
    try:
        insert = INSERT_DIALECTS[dialect]
    except KeyError:
        raise StorageTransactionFailure(f"Unsupported database dialect: {dialect}")
    return insert(Job).on_conflict_do_nothing(index_elements=[Job.link])


async def persist(db: Database, records: Sequence[RawJobRecord]) -> PersistResult:
    """
    Store a batch of records, skipping links that already exist.

    Args:
        db: Storage client
        records: Records from one crawl

    Returns:
        PersistResult with inserted/duplicates/failed counts. All zero for
        an empty batch (storage is not touched) or when the batch was
        rolled back.
    """
    if not records:
        return PersistResult()

    result = PersistResult()
    try:
        statement = insert_ignoring_duplicates(db.dialect)
        async with db.session() as session:
            async with session.begin():
                for record in records:
                    try:
                        async with session.begin_nested():
                            outcome = await session.execute(statement.values(**record.model_dump()))
                    except (IntegrityError, DataError) as e:
                        result.failed += 1
                        logger.warning(f"Skipping job {record.link}: {e.orig}")
                        continue

                    if outcome.rowcount == 1:
                        result.inserted += 1
                    else:
                        result.duplicates += 1
    except (SQLAlchemyError, StorageTransactionFailure, OSError) as e:
        failure = e if isinstance(e, StorageTransactionFailure) else StorageTransactionFailure(str(e))
        logger.error(f"Error saving jobs, batch of {len(records)} rolled back: {failure}")
        return PersistResult()

    logger.info(f"Saved {result.inserted} new jobs, found {result.duplicates} duplicates")
    return result
