"""SQL fragment helpers shared by repositories."""

from typing import Any, Dict, Mapping

from .errors import InvalidArgumentError


def sql_for_partial_update(
    data: Mapping[str, Any],
    js_to_sql: Mapping[str, str],
) -> Dict[str, Any]:
    """
    Build the SET clause of a partial UPDATE.

    Args:
        data: Logical field name -> new value, in the order to emit
        js_to_sql: Logical field name -> column name, for names that differ

    Returns:
        {"set_cols": '"first_name"=$1, "age"=$2', "values": ["Aliya", 32]}
        Placeholders are 1-based and aligned with `values`.

    Raises:
        InvalidArgumentError: If `data` is empty

    Keys are not checked against any list of known columns; that is the
    caller's job.
    """
    keys = list(data.keys())
    if not keys:
        raise InvalidArgumentError("No data")

    cols = [
        f'"{js_to_sql.get(key, key)}"=${idx}'
        for idx, key in enumerate(keys, start=1)
    ]

    return {
        "set_cols": ", ".join(cols),
        "values": [data[key] for key in keys],
    }
