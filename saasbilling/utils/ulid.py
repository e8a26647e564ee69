"""
ULID identifiers for primary keys.

ULIDs sort by creation time, which keeps B-tree inserts append-mostly for
write-heavy tables such as usage_records and audit_logs.
"""

from ulid import ULID


def generate_prefixed_ulid(prefix: str) -> str:
  """
  Generate a prefixed ULID for readability and type identification.

  Args:
      prefix: A short prefix to identify the record type

  Returns:
      A prefixed ULID string, e.g. "inv_01ARZ3NDEKTSV4RRFFQ69G5FAV"
  """
  return f"{prefix}_{ULID()}"
