"""
Field whitelists for job updates and searches.

Only names listed here ever become column references in generated SQL.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping

SEARCH_CRITERIA = ["title", "minSalary", "hasEquity", "company"]


class JobField(Enum):
    """Job fields a partial update may touch. Value is the column name."""

    TITLE = "title"
    SALARY = "salary"
    EQUITY = "equity"

    @property
    def column(self) -> str:
        return self.value

    @classmethod
    def from_key(cls, key: str) -> "JobField":
        try:
            return cls(key)
        except ValueError:
            raise KeyError(key) from None


UPDATABLE_FIELDS = [f.value for f in JobField]


def validate_job_update(data: Mapping[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Only checks which keys are present, not their values.
    """
    errors: List[str] = []

    for key in data:
        if key not in UPDATABLE_FIELDS:
            errors.append(
                f"Field '{key}' cannot be updated (allowed: {', '.join(UPDATABLE_FIELDS)})"
            )

    return errors


def validate_search_criteria(criteria: Mapping[str, Any]) -> List[str]:
    """Returns a list of error messages for unknown search criteria."""
    return [
        f"Unknown search criterion: {key}"
        for key in criteria
        if key not in SEARCH_CRITERIA
    ]


def update_columns(data: Mapping[str, Any]) -> Dict[str, str]:
    """Column alias table for the JobFields present in `data`."""
    return {key: JobField.from_key(key).column for key in data}
