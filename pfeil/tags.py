"""Span tags: value types and ``key=value`` parsing."""

from __future__ import annotations

import csv
import logging
from typing import Iterable, List, Optional, Tuple, Union, TYPE_CHECKING

from pfeil.errors import ValidationError

if TYPE_CHECKING:
    from pfeil.tracer.span import Span

logger = logging.getLogger(__name__)

TagValue = Union[str, bool, int]


def format_tag_value(value: TagValue) -> str:
    """
    Convert a tag value to the string sent to the backend.

    Booleans become ``true``/``false``, integers their decimal form.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    raise TypeError(f"unsupported tag value type: {type(value).__name__}")


def parse_tag(token: str) -> Tuple[str, str]:
    """
    Split a ``key=value`` token on the first ``=``.

    Raises:
        ValidationError: if there is no ``=`` or the key is empty
    """
    key, sep, value = token.partition("=")
    if not sep:
        raise ValidationError("tag must be key=value", {"tag": token})
    if not key:
        raise ValidationError("tag key is empty", {"tag": token})
    return key, value


def split_tag_options(values: Optional[Iterable[str]]) -> List[str]:
    """
    Expand repeated and comma-separated tag options into single tokens.

    ``["k1=v1,k2=v2", "k3=v3"]`` becomes ``["k1=v1", "k2=v2", "k3=v3"]``.
    Values are read as CSV so a quoted field may contain a comma. A value the
    CSV reader rejects, such as one with a line break in an unquoted field, is
    kept whole as a single token.
    """
    tokens: List[str] = []
    for value in values or []:
        if not value:
            continue
        try:
            rows = list(csv.reader([value]))
        except csv.Error as e:
            logger.debug("reading tag option %r as one tag: %s", value, e)
            tokens.append(value)
            continue
        for row in rows:
            tokens.extend(row)
    return tokens


def load_tags(span: "Span", tokens: Iterable[str]) -> int:
    """
    Set each ``key=value`` token as a tag on the span.

    Malformed tokens are logged and skipped. Returns the number of tags set.
    """
    count = 0
    for token in tokens:
        try:
            key, value = parse_tag(token)
        except ValidationError:
            logger.warning('unable to parse tag "%s", skipping', token)
            continue
        logger.debug('setting tag %s to "%s"', key, value)
        span.set_tag(key, value)
        count += 1
    return count
