import argparse
import json
from pathlib import Path
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .database import Database, init_database
from .env import get_database_url, load_env
from .errors import AlreadyExistsError, JoblyError
from .repositories import JobRepository


def _repository(args: argparse.Namespace) -> JobRepository:
    return JobRepository(Database.from_url(args.database_url))


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _fields(args: argparse.Namespace, names: Dict[str, str]) -> Dict[str, Any]:
    """Collect the options that were given, keyed by logical field name."""
    return {
        field: getattr(args, attr)
        for attr, field in names.items()
        if getattr(args, attr) is not None
    }


def cmd_init_db(args: argparse.Namespace) -> None:
    db = Database.from_url(args.database_url)
    init_database(db.engine)
    print(f"Database initialized at {args.database_url}")


def cmd_list(args: argparse.Namespace) -> None:
    _print_json(_repository(args).find_all())


def cmd_get(args: argparse.Namespace) -> None:
    _print_json(_repository(args).get(args.id))


def cmd_search(args: argparse.Namespace) -> None:
    criteria = _fields(args, {
        "title": "title",
        "min_salary": "minSalary",
        "company": "company",
    })
    if args.has_equity:
        criteria["hasEquity"] = True
    _print_json(_repository(args).search(criteria))


def cmd_create(args: argparse.Namespace) -> None:
    data = _fields(args, {
        "id": "id",
        "title": "title",
        "salary": "salary",
        "equity": "equity",
        "company_handle": "companyHandle",
    })
    _print_json(_repository(args).create(data))


def cmd_update(args: argparse.Namespace) -> None:
    data = _fields(args, {
        "title": "title",
        "salary": "salary",
        "equity": "equity",
    })
    _print_json(_repository(args).update(args.id, data))


def cmd_remove(args: argparse.Namespace) -> None:
    _repository(args).remove(args.id)
    print(f"Removed job {args.id}")


def load_jobs(repo: JobRepository, jobs: list) -> Dict[str, int]:
    """
    Create each job in `jobs`, skipping ids that already exist.

    Entries that are not objects or that the database rejects are counted
    as failed; the rest of the list is still loaded.

    Returns:
        {"created": n, "skipped": n, "failed": n}
    """
    created = 0
    skipped = 0
    failed = 0
    for idx, job in enumerate(jobs):
        if not isinstance(job, dict):
            repo.logger.warning("Skipping entry: not a JSON object", index=idx)
            failed += 1
            continue
        try:
            repo.create(job)
            created += 1
        except AlreadyExistsError as e:
            repo.logger.warning(f"Skipping job: {e.message}", index=idx)
            skipped += 1
        except (JoblyError, SQLAlchemyError) as e:
            repo.logger.error(f"Error loading job: {e}", index=idx)
            failed += 1
    return {"created": created, "skipped": skipped, "failed": failed}


def cmd_load(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        jobs = json.load(f)
    if not isinstance(jobs, list):
        raise SystemExit("Input must be a JSON list of jobs")

    repo = _repository(args)
    outcome = load_jobs(repo, jobs)
    print(f"Created: {outcome['created']}")
    print(f"Skipped: {outcome['skipped']}")
    print(f"Failed:  {outcome['failed']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobly", description="Job listings data-access CLI")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--database-url",
        default=get_database_url(),
        help="SQLAlchemy database URL (default: $DATABASE_URL or sqlite:///data/jobly.db)",
    )

    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("init-db", help="Create the companies and jobs tables")
    ini.set_defaults(func=cmd_init_db)

    lst = subparsers.add_parser("list", help="List all jobs ordered by id")
    lst.set_defaults(func=cmd_list)

    get = subparsers.add_parser("get", help="Show one job")
    get.add_argument("id", type=int, help="Job id")
    get.set_defaults(func=cmd_get)

    sea = subparsers.add_parser("search", help="Search jobs; all filters are combined")
    sea.add_argument("--title", help="Case-insensitive substring of the title")
    sea.add_argument("--min-salary", type=int, help="Minimum salary")
    sea.add_argument("--has-equity", action="store_true", help="Only jobs offering equity")
    sea.add_argument("--company", help="Company handle")
    sea.set_defaults(func=cmd_search)

    cre = subparsers.add_parser("create", help="Create a job")
    cre.add_argument("--id", type=int, help="Explicit job id (default: generated)")
    cre.add_argument("--title", required=True, help="Job title")
    cre.add_argument("--salary", type=int, help="Salary")
    cre.add_argument("--equity", help="Equity as a decimal between 0 and 1")
    cre.add_argument("--company-handle", required=True, help="Handle of the hiring company")
    cre.set_defaults(func=cmd_create)

    upd = subparsers.add_parser("update", help="Partially update a job")
    upd.add_argument("id", type=int, help="Job id")
    upd.add_argument("--title", help="New title")
    upd.add_argument("--salary", type=int, help="New salary")
    upd.add_argument("--equity", help="New equity")
    upd.set_defaults(func=cmd_update)

    rem = subparsers.add_parser("remove", help="Delete a job")
    rem.add_argument("id", type=int, help="Job id")
    rem.set_defaults(func=cmd_remove)

    lod = subparsers.add_parser("load", help="Create jobs from a JSON list, skipping duplicate ids")
    lod.add_argument("--input", required=True, help="Path to JSON file")
    lod.set_defaults(func=cmd_load)

    return parser


def main(argv=None):
    # Load .env if present (DATABASE_URL, JOBLY_LOG_LEVEL, ...)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except JoblyError as e:
            raise SystemExit(f"Error: {e.message}")
        return

    parser.print_help()


if __name__ == "__main__":
    main()
