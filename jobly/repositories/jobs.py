"""
Jobs Repository.

Responsibilities:
- CRUD and filtered search over the jobs table.
- Mapping rows to plain job records.

Non-Responsibilities:
- No transactions spanning several statements.
- No HTTP status mapping.

Invariant:
Every statement is parameterized; only whitelisted field names are
turned into column references.
"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError

from ..database import Database
from ..errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from ..logger import StructuredLogger
from ..schema import update_columns, validate_job_update, validate_search_criteria
from ..sql import sql_for_partial_update

JOB_COLUMNS = 'id, title, salary, equity, company_handle AS "companyHandle"'


def format_equity(value: Any) -> str:
    """
    Render an equity value as a plain decimal string ("0.00001", never "1e-05").

    PostgreSQL hands back Decimal with its scale preserved. SQLite stores
    NUMERIC as REAL and hands back float or int, so "0.10" reads back as
    "0.1" there.
    """
    if isinstance(value, float):
        value = Decimal(repr(value))
    elif not isinstance(value, Decimal):
        value = Decimal(str(value))
    return format(value, "f")


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so `term` matches literally (with ESCAPE '\\')."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_record(row: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a jobs row; equity is always a decimal string or None."""
    job = dict(row)
    if job.get("equity") is not None:
        job["equity"] = format_equity(job["equity"])
    return job


class JobRepository:
    """Related functions for jobs."""

    def __init__(self, db: Database, logger: Optional[StructuredLogger] = None):
        self.db = db
        self.logger = logger or db.logger

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a job (from data), update db, return new job data.

        data should be { title, salary, equity, companyHandle } and may
        carry an explicit `id`; without one the database assigns it. On
        PostgreSQL the id sequence is moved past explicit ids.

        Returns { id, title, salary, equity, companyHandle }

        Raises AlreadyExistsError if a job with that id is already in
        the database.
        """
        self.logger.record_operation("create")
        job_id = data.get("id")

        if job_id is not None and self._exists(job_id):
            raise AlreadyExistsError(f"Duplicate job: {job_id}")

        values = [
            data.get("title"),
            data.get("salary"),
            data.get("equity"),
            data.get("companyHandle"),
        ]
        if job_id is None:
            sql = f"""INSERT INTO jobs
                   (title, salary, equity, company_handle)
                   VALUES ($1, $2, $3, $4)
                   RETURNING {JOB_COLUMNS}"""
        else:
            sql = f"""INSERT INTO jobs
                   (title, salary, equity, company_handle, id)
                   VALUES ($1, $2, $3, $4, $5)
                   RETURNING {JOB_COLUMNS}"""
            values.append(job_id)

        try:
            rows = self.db.query(sql, values)
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same id
            if job_id is not None and self._exists(job_id):
                raise AlreadyExistsError(f"Duplicate job: {job_id}") from e
            raise

        if job_id is not None and self.db.dialect_name == "postgresql":
            self._sync_id_sequence()

        job = _to_record(rows[0])
        self.logger.info("Job created", job_id=job["id"], company=job["companyHandle"])
        return job

    def find_all(self) -> List[Dict[str, Any]]:
        """
        Find all jobs.

        Returns [{ id, title, salary, equity, companyHandle }, ...]
        ordered by id.
        """
        self.logger.record_operation("find_all")
        rows = self.db.query(
            f"""SELECT {JOB_COLUMNS}
               FROM jobs
               ORDER BY id""")
        return [_to_record(row) for row in rows]

    def get(self, job_id: int) -> Dict[str, Any]:
        """
        Given a job id, return data about job.

        Returns { id, title, salary, equity, companyHandle }. The company
        itself is not embedded; look it up by companyHandle.

        Raises NotFoundError if not found.
        """
        self.logger.record_operation("get")
        rows = self.db.query(
            f"""SELECT {JOB_COLUMNS}
               FROM jobs
               WHERE id = $1""",
            [job_id])

        if not rows:
            raise NotFoundError(f"No job: {job_id}")

        return _to_record(rows[0])

    def update(self, job_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update job data with `data`.

        This is a "partial update" --- it's fine if data doesn't contain all
        the fields; this only changes provided ones.

        Data can include: { title, salary, equity }

        Returns { id, title, salary, equity, companyHandle }

        Raises InvalidArgumentError if data is empty or names a field that
        cannot be updated, NotFoundError if not found.
        """
        self.logger.record_operation("update")
        errors = validate_job_update(data)
        if errors:
            raise InvalidArgumentError("; ".join(errors))

        result = sql_for_partial_update(data, update_columns(data))
        values = result["values"]
        id_var_idx = f"${len(values) + 1}"

        rows = self.db.query(
            f"""UPDATE jobs
               SET {result["set_cols"]}
               WHERE id = {id_var_idx}
               RETURNING {JOB_COLUMNS}""",
            [*values, job_id])

        if not rows:
            raise NotFoundError(f"No job: {job_id}")

        return _to_record(rows[0])

    def remove(self, job_id: int) -> None:
        """
        Delete given job from database; returns None.

        Raises NotFoundError if job not found.
        """
        self.logger.record_operation("remove")
        rows = self.db.query(
            """DELETE
               FROM jobs
               WHERE id = $1
               RETURNING id""",
            [job_id])

        if not rows:
            raise NotFoundError(f"No job: {job_id}")

        self.logger.info("Job removed", job_id=job_id)

    def search(self, criteria: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """
        Find jobs matching every given criterion.

        criteria can include:
            title: case-insensitive substring of the title
            minSalary: salary >= minSalary
            hasEquity: if true, equity > 0
            company: exact company handle

        Returns [{ id, title, salary, equity, companyHandle }, ...]
        ordered by id. No criteria returns every job.

        Raises InvalidArgumentError on unknown criteria.
        """
        self.logger.record_operation("search")
        errors = validate_search_criteria(criteria)
        if errors:
            raise InvalidArgumentError("; ".join(errors))

        where: List[str] = []
        values: List[Any] = []

        if criteria.get("title"):
            values.append(f"%{escape_like(criteria['title'].lower())}%")
            where.append(f"LOWER(title) LIKE ${len(values)} ESCAPE '\\'")
        if criteria.get("minSalary") is not None:
            values.append(criteria["minSalary"])
            where.append(f"salary >= ${len(values)}")
        if criteria.get("hasEquity"):
            values.append(0)
            where.append(f"equity > ${len(values)}")
        if criteria.get("company"):
            values.append(criteria["company"])
            where.append(f"company_handle = ${len(values)}")

        sql = f"""SELECT {JOB_COLUMNS}
               FROM jobs"""
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY id"

        rows = self.db.query(sql, values)
        return [_to_record(row) for row in rows]

    def _sync_id_sequence(self) -> None:
        # Explicit ids bypass the SERIAL sequence; move it past them so
        # generated ids do not collide.
        self.db.query(
            """SELECT setval(pg_get_serial_sequence('jobs', 'id'),
                             (SELECT MAX(id) FROM jobs))""")

    def _exists(self, job_id: int) -> bool:
        rows = self.db.query(
            """SELECT id
               FROM jobs
               WHERE id = $1""",
            [job_id])
        return bool(rows)
