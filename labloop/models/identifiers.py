"""
Helpers for human-facing number columns (PAT00000001, CASE00000001...).

The database constraint checks prefix and width portably (PostgreSQL and
SQLite); the @validates hooks apply the full prefix + digits pattern.
"""

from sqlalchemy import CheckConstraint

from labloop.constants.id_prefixes import ENTITY_ID_PREFIXES, SEQUENCE_DIGITS, id_regex


def number_constraint(table: str, entity_type: str) -> CheckConstraint:
    prefix, column = ENTITY_ID_PREFIXES[entity_type]
    return CheckConstraint(
        f"{column} LIKE '{prefix}%' AND length({column}) = {len(prefix) + SEQUENCE_DIGITS}",
        name=f"ck_{table}_{column}_format",
    )


def check_number(entity_type: str, value: str) -> str:
    """
    Validate an entity number before it is assigned.

    Raises:
        ValueError: If the value is not the entity's prefix plus 8 digits
    """
    prefix, column = ENTITY_ID_PREFIXES[entity_type]
    if not isinstance(value, str) or not id_regex(prefix).fullmatch(value):
        raise ValueError(
            f"Invalid {column} {value!r}: expected {prefix} followed by "
            f"{SEQUENCE_DIGITS} digits"
        )
    return value
