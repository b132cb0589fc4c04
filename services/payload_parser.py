# services/payload_parser.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError

from core.errors import EmptyBatchError, ImpressionsError, ParseError
from models.payload import ImpressionBatch, ImpressionRecord


class ParseStatus(Enum):
    OK = "ok"
    EMPTY = "empty"
    INVALID = "invalid"


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing a body. `error` is set for EMPTY and INVALID."""
    status: ParseStatus
    impressions: List[ImpressionRecord] = field(default_factory=list)
    error: Optional[ImpressionsError] = None


def parse_impressions(text: str) -> ParseResult:
    """
    Parses a JSON array of impressions.

    The batch is all-or-nothing: one bad element makes the whole result
    INVALID with a ParseError. `[]` and `null` give EMPTY with an EmptyBatchError.
    """
    try:
        impressions = ImpressionBatch.validate_json(text)
    except ValidationError as e:
        return ParseResult(ParseStatus.INVALID, error=ParseError(_summarise(e)))

    if not impressions:
        return ParseResult(ParseStatus.EMPTY, error=EmptyBatchError("No impressions received."))
    return ParseResult(ParseStatus.OK, impressions=impressions)


def _summarise(error: ValidationError, limit: int = 5) -> str:
    details = error.errors(include_url=False, include_input=False)
    parts = []
    for detail in details[:limit]:
        location = ".".join(str(p) for p in detail["loc"]) or "<root>"
        parts.append(f"{location}: {detail['msg']}")
    if len(details) > limit:
        parts.append(f"... {len(details) - limit} more")
    return "; ".join(parts)
