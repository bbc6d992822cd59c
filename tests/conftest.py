"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from jobly.database import Database, get_engine, init_database
from jobly.logger import StructuredLogger
from jobly.repositories import JobRepository


@pytest.fixture
def test_logger() -> StructuredLogger:
    """Silent logger with fresh metrics."""
    return StructuredLogger(
        name="jobly.test",
        level="DEBUG",
        enable_file=False,
        enable_console=False,
    )


@pytest.fixture
def database_url(tmp_path) -> str:
    """URL of an initialized, empty SQLite database."""
    url = f"sqlite:///{tmp_path / 'test.db'}"
    engine = get_engine(url)
    init_database(engine)
    engine.dispose()
    return url


@pytest.fixture
def db(database_url, test_logger) -> Database:
    """Database client with companies c1..c3 seeded."""
    database = Database.from_url(database_url, logger=test_logger)
    for handle, name in [("c1", "C1"), ("c2", "C2"), ("c3", "C3")]:
        database.query(
            "INSERT INTO companies (handle, name, description) VALUES ($1, $2, $3)",
            [handle, name, f"Desc {name}"],
        )
    yield database
    database.dispose()


@pytest.fixture
def job_repo(db) -> JobRepository:
    return JobRepository(db)


@pytest.fixture
def sample_jobs() -> List[Dict[str, Any]]:
    """Sample job data."""
    return [
        {"id": 1, "title": "Software Engineer", "salary": 100000, "equity": "0.5", "companyHandle": "c1"},
        {"id": 2, "title": "Data Scientist", "salary": 50000, "equity": "0", "companyHandle": "c1"},
        {"id": 3, "title": "Engineering Manager", "salary": 150000, "equity": None, "companyHandle": "c2"},
        {"id": 4, "title": "Barista", "salary": None, "equity": "0.1", "companyHandle": "c3"},
    ]


@pytest.fixture
def populated_repo(job_repo, sample_jobs) -> JobRepository:
    """Repository over a database holding `sample_jobs`."""
    for job in sample_jobs:
        job_repo.create(job)
    return job_repo
