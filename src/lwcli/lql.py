"""Turning operator input into an :class:`~lwcli.models.LQLQuery` the API accepts.

A query may be given as LQL text, for example::

    MyQuery(CloudTrailRawEvents e) { SELECT INSERT_ID }

or as a JSON document carrying ``QUERY_TEXT`` and optionally the
``START_TIME_RANGE``/``END_TIME_RANGE`` bounds. :func:`prepare_query` accepts
either and checks the time range before anything is sent.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone

from lwcli.exceptions import InvalidUsageError
from lwcli.models import LQLQuery

# A query starts with its name and its data sources, then the body.
_LQL_RE = re.compile(r"^(\w+)\([^)]+\)\s*{", re.MULTILINE | re.DOTALL)

TRANSLATE_ERROR = "unable to translate query blob"

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def translate(query: LQLQuery, blob: str) -> LQLQuery:
    """Fill ``query.query_text`` from *blob* unless it is already set.

    Time bounds in a JSON *blob* only fill the bounds *query* lacks.

    Raises:
        InvalidUsageError: If *blob* is neither a JSON object nor LQL text.
    """
    if query.query_text:
        return query

    try:
        document = json.loads(blob)
    except ValueError:
        document = None
    if isinstance(document, dict):
        parsed = LQLQuery.model_validate(document)
        return query.model_copy(
            update={
                "start_time_range": query.start_time_range or parsed.start_time_range,
                "end_time_range": query.end_time_range or parsed.end_time_range,
                "query_text": parsed.query_text,
            }
        )

    if _LQL_RE.search(blob):
        return query.model_copy(update={"query_text": blob})

    raise InvalidUsageError(TRANSLATE_ERROR)


def parse_time(value: str) -> datetime:
    """Parse an RFC 3339 timestamp or a count of epoch milliseconds.

    Raises:
        InvalidUsageError: If *value* is neither.
    """
    try:
        # fromisoformat() only learned the "Z" suffix in 3.11.
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None and parsed.tzinfo is not None:
        return parsed

    try:
        millis = int(value)
    except ValueError:
        raise InvalidUsageError(f"unable to parse time ({value})") from None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def validate_range(query: LQLQuery, allow_empty_times: bool) -> None:
    """Check that the query's time range parses and runs forwards.

    With *allow_empty_times* a missing start means the epoch and a missing
    end means now.

    Raises:
        InvalidUsageError: On an empty bound that is not allowed, a bound that
            does not parse, or a start after the end.
    """
    if query.start_time_range:
        start = parse_time(query.start_time_range)
    elif allow_empty_times:
        start = _EPOCH
    else:
        raise InvalidUsageError("start time must not be empty")

    if query.end_time_range:
        end = parse_time(query.end_time_range)
    elif allow_empty_times:
        end = datetime.now(timezone.utc)
    else:
        raise InvalidUsageError("end time must not be empty")

    if start > end:
        raise InvalidUsageError("date range should have a start time before the end time")


def prepare_query(
    blob: str,
    start: str = "",
    end: str = "",
    allow_empty_times: bool = False,
) -> LQLQuery:
    """Build a validated query from *blob* and the optional time bounds.

    Saving a query allows an empty range; running one does not.

    Raises:
        InvalidUsageError: If the query cannot be translated, the range is
            invalid, or the query text ends up empty.
    """
    query = translate(LQLQuery(start_time_range=start, end_time_range=end), blob)
    validate_range(query, allow_empty_times)
    if not query.query_text:
        raise InvalidUsageError("query should not be empty")
    return query
