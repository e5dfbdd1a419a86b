"""Tolerant decoder for weather-station report targets.

Stations send their readings as a query string on a GET request. Some
firmware omits the ``?`` separator and joins the station identifier and the
first parameter with ``&`` directly in the path::

    /data/report/STATION?tempf=72.5&humidity=45    (conformant)
    /data/report/STATION&tempf=72.5&humidity=45    (non-conformant)

Both forms decode to the same station identifier and fields. Malformed
pairs are skipped and reported as warnings; decoding never fails.
"""

import re
from dataclasses import dataclass, field
from urllib.parse import unquote_plus

from awp_exporter.core.models import Observation

# A '%' not followed by two hex digits
_INVALID_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class DecodedReport:
    """Result of decoding a report target.

    Attributes:
        observation: Station identifier and every successfully decoded field.
        errors: Human-readable descriptions of skipped, malformed pairs.
    """

    observation: Observation
    errors: list[str] = field(default_factory=list)

    @property
    def station(self) -> str:
        return self.observation.station

    @property
    def fields(self) -> dict[str, list[str]]:
        return self.observation.fields


def _path_base(path: str) -> str:
    """Return the last element of a slash-separated path.

    Trailing slashes are removed first. An empty path yields ``"."`` and a
    path made only of slashes yields ``"/"``.
    """
    if not path:
        return "."
    trimmed = path.rstrip("/")
    if not trimmed:
        return "/"
    return trimmed.rsplit("/", 1)[-1]


def _unescape(component: str) -> str:
    """Percent-decode a key or value, rejecting broken escapes."""
    match = _INVALID_ESCAPE.search(component)
    if match is not None:
        bad = component[match.start() : match.start() + 3]
        raise ValueError(f"invalid URL escape {bad!r}")
    return unquote_plus(component)


def parse_query(
    query: str,
    into: dict[str, list[str]],
    errors: list[str],
) -> None:
    """Decode a form-urlencoded query string into an existing mapping.

    Args:
        query: Raw query string without a leading ``?``.
        into: Mapping that receives decoded values, appended per key.
        errors: List that receives a description of each skipped pair.
    """
    for segment in query.split("&"):
        if not segment:
            continue
        if ";" in segment:
            errors.append(f"invalid semicolon separator in {segment!r}")
            continue
        raw_key, _, raw_value = segment.partition("=")
        try:
            key = _unescape(raw_key)
            value = _unescape(raw_value)
        except ValueError as e:
            errors.append(str(e))
            continue
        if not key:
            continue
        into.setdefault(key, []).append(value)


def decode_report_target(path: str, query_string: str = "") -> DecodedReport:
    """Extract the station identifier and fields from a report target.

    Args:
        path: Request path (already percent-decoded by the HTTP server).
        query_string: Raw query component, empty if the request had none.

    Returns:
        DecodedReport with the observation and any non-fatal errors.

    When a standard query is present it is decoded first. Pairs embedded in
    the path after the first ``&`` are decoded afterwards, so on duplicate
    keys the standard query wins.
    """
    station_path, _, embedded = path.partition("&")
    values: dict[str, list[str]] = {}
    errors: list[str] = []

    if query_string:
        parse_query(query_string, values, errors)
    if embedded:
        parse_query(embedded, values, errors)

    observation = Observation(station=_path_base(station_path), fields=values)
    return DecodedReport(observation=observation, errors=errors)
