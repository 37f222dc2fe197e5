"""
Column Metadata - Interpret MySQL column descriptors.

This module turns the raw rows returned by SHOW COLUMNS into
ColumnDescriptor objects and classifies them:
- base type, length and unsigned flag parsed from the type expression
- integer / text / date type families
- key role (primary, unique, index)

Everything here is pure: no queries are executed.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from dbadmin.core.events import ClassificationWarning, WarningSink
from dbadmin.core.logging_config import get_logger

logger = get_logger(__name__)


# Numeric types that may carry the UNSIGNED attribute. DECIMAL, NUMERIC,
# FLOAT and DOUBLE are grouped with the integers; keep them here.
INTEGER_TYPES = frozenset({
    "INTEGER",
    "INT",
    "SMALLINT",
    "TINYINT",
    "MEDIUMINT",
    "BIGINT",
    "DECIMAL",
    "NUMERIC",
    "FLOAT",
    "DOUBLE",
    "BIT",
})

TEXT_TYPES = frozenset({"TEXT"})

DATE_TYPES = frozenset({
    "DATE",
    "DATETIME",
    "TIMESTAMP",
    "TIME",
    "YEAR",
})

_DIGITS = re.compile(r"[0-9]+")


class KeyRole(str, Enum):
    """Index participation of a column, keyed by the engine's short code."""
    NONE = ""
    PRIMARY = "PRI"
    UNIQUE = "UNI"
    INDEX = "MUL"


KEY_FULL_NAMES = {
    KeyRole.PRIMARY: "PRIMARY",
    KeyRole.UNIQUE: "UNIQUE",
    KeyRole.INDEX: "INDEX",
}


@dataclass(frozen=True)
class ParsedType:
    """
    A raw type expression split into its parts.

    Attributes:
        raw: The type expression exactly as reported by the engine
        core: First whitespace-delimited token, e.g. "int(11)"
        qualifiers: Remaining tokens, e.g. ("unsigned", "zerofill")
        base_type: Type name without parameters, e.g. "int"
        length: First number found in the expression, if any
        is_unsigned: Whether the expression contains "unsigned"
    """
    raw: str
    core: str
    qualifiers: Tuple[str, ...]
    base_type: str
    length: Optional[int]
    is_unsigned: bool


def extract_length(raw: str) -> Optional[int]:
    """
    Get the first run of digits in a type expression.

    Example:
        >>> extract_length("varchar(255)")
        255
        >>> extract_length("text") is None
        True
    """
    match = _DIGITS.search(raw)
    if match:
        return int(match.group(0))
    return None


def _strip_parameters(core: str) -> str:
    bracket_location = core.find("(")
    if bracket_location == -1:
        return core.strip()
    return core[:bracket_location].strip()


def parse_type(raw: str) -> ParsedType:
    """
    Split a raw type expression such as "int(11) unsigned".

    The first whitespace-delimited token is the core type; anything after it
    is a qualifier. When no type name can be extracted the raw string is used
    as the base type so the column stays displayable.

    Args:
        raw: Type expression from the engine

    Returns:
        ParsedType for the expression
    """
    tokens = raw.split()
    core = tokens[0] if tokens else ""
    base = _strip_parameters(core)

    if not base:
        logger.debug(f"No base type in '{raw}', using raw expression")
        base = raw

    return ParsedType(
        raw=raw,
        core=core,
        qualifiers=tuple(tokens[1:]),
        base_type=base,
        length=extract_length(raw),
        is_unsigned=is_unsigned(raw),
    )


def base_type(parsed: Union[ParsedType, str]) -> str:
    """Get the type name of a parsed (or raw) type expression."""
    if isinstance(parsed, str):
        parsed = parse_type(parsed)
    return parsed.base_type


def is_unsigned(raw: str) -> bool:
    """Check for the lowercase "unsigned" qualifier the engine emits."""
    return "unsigned" in raw


def is_integer_family(base: str) -> bool:
    return base.upper() in INTEGER_TYPES


def is_text_family(base: str) -> bool:
    return base.upper() in TEXT_TYPES


def is_date_family(base: str) -> bool:
    return base.upper() in DATE_TYPES


def parse_key_role(code: Optional[str]) -> Optional[KeyRole]:
    """
    Map an engine key code to a KeyRole.

    Returns:
        The matching KeyRole, or None for a code outside the vocabulary
    """
    normalized = (code or "").strip().upper()
    try:
        return KeyRole(normalized)
    except ValueError:
        return None


def is_primary_key(role: Optional[KeyRole]) -> bool:
    return role == KeyRole.PRIMARY


def is_unique(role: Optional[KeyRole]) -> bool:
    return role == KeyRole.UNIQUE


def key_role_full_name(
    role: Union[KeyRole, str, None],
    warnings: Optional[WarningSink] = None,
    column: Optional[str] = None,
) -> Optional[str]:
    """
    Get the full name of a key role (e.g. 'PRIMARY' instead of 'PRI').

    Unknown codes are not an error: a warning is logged, a
    ClassificationWarning is sent to ``warnings`` and the code itself is
    returned as the label.

    Args:
        role: KeyRole or raw key code
        warnings: Optional sink for structured warning events
        column: Column name to attach to the warning

    Returns:
        Full key name, None for columns without a key
    """
    if isinstance(role, KeyRole):
        return KEY_FULL_NAMES.get(role)

    code = role or ""
    parsed = parse_key_role(code)
    if parsed is not None:
        return KEY_FULL_NAMES.get(parsed)

    message = f"Could not determine full name for key: {code}"
    logger.warning(message)
    if warnings is not None:
        warnings(ClassificationWarning(
            code="unrecognized_key_code",
            message=message,
            column=column,
        ))
    return code


def _parse_nullable(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() == "yes"


def _pick(row: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return default


@dataclass
class ColumnDescriptor:
    """
    A single table column as reported by the engine.

    Only ``nullable`` and ``column_name`` are expected to change after
    creation, when a mutation on the column succeeds. The parsed type is
    computed on first use and recomputed whenever ``raw_datatype`` no longer
    matches the expression it was parsed from.

    Example:
        >>> column = ColumnDescriptor("users", "id", "int(11) unsigned", False, "PRI")
        >>> column.base_type, column.length, column.is_unsigned
        ('int', 11, True)
        >>> column.key_full_name
        'PRIMARY'
    """
    table_name: str
    column_name: str
    raw_datatype: str
    nullable: bool
    key_code: str = ""
    default: Any = None
    extra: str = ""
    warnings: Optional[WarningSink] = field(default=None, repr=False, compare=False)
    _parsed: Optional[ParsedType] = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def from_row(
        cls,
        table_name: str,
        row: Dict[str, Any],
        warnings: Optional[WarningSink] = None,
    ) -> "ColumnDescriptor":
        """
        Build a descriptor from a metadata row.

        Accepts the short keys (name, datatype, null, key) as well as the
        SHOW COLUMNS keys (Field, Type, Null, Key, Default, Extra).
        """
        return cls(
            table_name=table_name,
            column_name=_pick(row, "name", "Field"),
            raw_datatype=_pick(row, "datatype", "Type", default=""),
            nullable=_parse_nullable(_pick(row, "null", "Null")),
            key_code=_pick(row, "key", "Key", default="") or "",
            default=_pick(row, "default", "Default"),
            extra=_pick(row, "extra", "Extra", default="") or "",
            warnings=warnings,
        )

    @property
    def parsed_type(self) -> ParsedType:
        if self._parsed is None or self._parsed.raw != self.raw_datatype:
            self._parsed = parse_type(self.raw_datatype)
        return self._parsed

    @property
    def base_type(self) -> str:
        return self.parsed_type.base_type

    @property
    def length(self) -> Optional[int]:
        return self.parsed_type.length

    @property
    def is_unsigned(self) -> bool:
        return self.parsed_type.is_unsigned

    @property
    def is_integer_type(self) -> bool:
        return is_integer_family(self.base_type)

    @property
    def is_text(self) -> bool:
        return is_text_family(self.base_type)

    @property
    def is_date(self) -> bool:
        return is_date_family(self.base_type)

    @property
    def key_role(self) -> Optional[KeyRole]:
        return parse_key_role(self.key_code)

    @property
    def is_primary_key(self) -> bool:
        return is_primary_key(self.key_role)

    @property
    def is_unique(self) -> bool:
        return is_unique(self.key_role)

    @property
    def can_be_unsigned(self) -> bool:
        return can_be_unsigned(self)

    @property
    def key_full_name(self) -> Optional[str]:
        return key_role_full_name(self.key_code, warnings=self.warnings, column=self.column_name)


def can_be_unsigned(column: ColumnDescriptor) -> bool:
    """
    Check whether a column's type accepts the UNSIGNED attribute.

    This does not look at whether the column is currently unsigned.
    """
    return is_integer_family(column.base_type)
