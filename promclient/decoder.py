"""
Decoding of Prometheus HTTP API response bodies.

Query responses are wrapped in an envelope::

    {"status": "success", "data": {"resultType": "...", "result": ...}}
    {"status": "error", "errorType": "bad_data", "error": "..."}

The decoder reads the envelope once, branches on ``status`` and then on
``data.resultType`` and hands the raw ``result`` subtree to the decoder of the
matching shape. Samples arrive as ``[timestamp, "value"]`` arrays and are
validated and converted to :class:`~promclient.models.Sample` on the way.
"""

import json
import logging
import math
from typing import Any, Callable, Optional, Union

from .errors import ApiError, DecodeError, ProtocolError
from .models import (
    MatrixResponse,
    MatrixSeries,
    Metric,
    QueryResponse,
    ResultType,
    Sample,
    ScalarResponse,
    Status,
    VectorEntry,
    VectorResponse,
)

logger = logging.getLogger(__name__)

Body = Union[bytes, str]


def parse_json(body: Body, operation: str) -> Any:
    """Parse a response body, raising ProtocolError if it is not JSON."""
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise ProtocolError(
            f"response body is not valid JSON: {e}",
            response_body=_preview(body),
            operation=operation,
        ) from e


def _preview(body: Body) -> str:
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return body[:500]


# =========================================================================
# Samples and metrics
# =========================================================================


def decode_sample(raw: Any, operation: str) -> Sample:
    """
    Convert a wire ``[timestamp, "value"]`` pair to a Sample.

    Raises:
        DecodeError: If the pair is too short or its components have the
            wrong types
    """
    if not isinstance(raw, list) or len(raw) < 2:
        raise DecodeError(f"malformed sample {raw!r}: expected [timestamp, value]",
                          operation=operation)

    timestamp, value = raw[0], raw[1]
    # bool is an int subclass but never a valid timestamp
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise DecodeError(f"malformed sample {raw!r}: timestamp is not a number",
                          operation=operation)
    if not math.isfinite(timestamp):
        raise DecodeError(f"malformed sample {raw!r}: timestamp is not finite",
                          operation=operation)
    if not isinstance(value, str):
        raise DecodeError(f"malformed sample {raw!r}: value is not a string",
                          operation=operation)

    return Sample(timestamp=float(timestamp), value=value)


def decode_metric(raw: Any, operation: str) -> Metric:
    """Convert a wire label object to a Metric, keeping label order."""
    if not isinstance(raw, dict):
        raise DecodeError(f"malformed metric {raw!r}: expected an object",
                          operation=operation)
    for label, value in raw.items():
        if not isinstance(value, str):
            raise DecodeError(f"malformed metric: label {label!r} has non-string value",
                              operation=operation)
    return Metric(raw)


def _require_field(entry: Any, key: str, kind: str, operation: str) -> Any:
    if not isinstance(entry, dict) or key not in entry:
        raise DecodeError(f"malformed {kind} entry: missing {key!r}", operation=operation)
    return entry[key]


def _require_list(value: Any, what: str, operation: str) -> list:
    if not isinstance(value, list):
        raise DecodeError(f"malformed {what}: expected an array", operation=operation)
    return value


# =========================================================================
# Result shapes
# =========================================================================


def _decode_scalar(result: Any, result_type: str, warnings: tuple[str, ...],
                   operation: str) -> ScalarResponse:
    return ScalarResponse(
        sample=decode_sample(result, operation),
        result_type=result_type,
        warnings=warnings,
    )


def _decode_vector(result: Any, result_type: str, warnings: tuple[str, ...],
                   operation: str) -> VectorResponse:
    entries = []
    for entry in _require_list(result, "vector result", operation):
        metric = _require_field(entry, "metric", "vector", operation)
        value = _require_field(entry, "value", "vector", operation)
        entries.append(VectorEntry(
            metric=decode_metric(metric, operation),
            sample=decode_sample(value, operation),
        ))
    return VectorResponse(entries=tuple(entries), warnings=warnings)


def _decode_matrix(result: Any, result_type: str, warnings: tuple[str, ...],
                   operation: str) -> MatrixResponse:
    series = []
    for entry in _require_list(result, "matrix result", operation):
        metric = _require_field(entry, "metric", "matrix", operation)
        values = _require_field(entry, "values", "matrix", operation)
        series.append(MatrixSeries(
            metric=decode_metric(metric, operation),
            samples=tuple(
                decode_sample(raw, operation)
                for raw in _require_list(values, "matrix values", operation)
            ),
        ))
    return MatrixResponse(series=tuple(series), warnings=warnings)


ShapeDecoder = Callable[[Any, str, tuple[str, ...], str], QueryResponse]

SHAPE_DECODERS: dict[str, ShapeDecoder] = {
    ResultType.SCALAR.value: _decode_scalar,
    ResultType.STRING.value: _decode_scalar,
    ResultType.VECTOR.value: _decode_vector,
    ResultType.MATRIX.value: _decode_matrix,
}


# =========================================================================
# Envelopes
# =========================================================================


def _unwrap_envelope(envelope: Any, operation: str) -> tuple[dict[str, Any], tuple[str, ...]]:
    """
    Check the envelope status and return its ``data`` object and warnings.

    ``data`` is only looked at once the status is known to be ``success``.
    """
    if not isinstance(envelope, dict):
        raise DecodeError("response is not a JSON object", operation=operation)

    status = envelope.get("status")
    if status == Status.ERROR.value:
        raise ApiError(
            kind=str(envelope.get("errorType", "")),
            message=str(envelope.get("error", "")),
            operation=operation,
        )
    if status != Status.SUCCESS.value:
        if status is None:
            raise DecodeError("response has no status", operation=operation)
        raise DecodeError(f"invalid response status {status}", operation=operation)

    warnings = envelope.get("warnings") or []
    if not isinstance(warnings, list):
        raise DecodeError("malformed warnings: expected an array", operation=operation)
    for warning in warnings:
        logger.warning(f"Prometheus returned a warning for {operation}: {warning}")

    data = envelope.get("data")
    if data is None:
        raise DecodeError("success response has no data", operation=operation)
    if not isinstance(data, dict):
        raise DecodeError("malformed data: expected an object", operation=operation)

    return data, tuple(str(w) for w in warnings)


def decode_envelope(body: Body, operation: str = "query",
                    accepted: Optional[tuple[str, ...]] = None) -> QueryResponse:
    """
    Decode a query response body into a typed result.

    Args:
        body: Raw response body
        operation: Operation name used in error messages
        accepted: Result types allowed for this operation (all if None)

    Returns:
        The ScalarResponse, VectorResponse or MatrixResponse matching
        ``data.resultType``

    Raises:
        ProtocolError: If the body is not JSON
        ApiError: If the envelope status is ``error``
        DecodeError: If the envelope or result is structurally unexpected
    """
    data, warnings = _unwrap_envelope(parse_json(body, operation), operation)

    result_type = data.get("resultType")
    decoder = SHAPE_DECODERS.get(result_type) if isinstance(result_type, str) else None
    if decoder is None or (accepted is not None and result_type not in accepted):
        raise DecodeError(f"invalid response type {result_type}", operation=operation)

    if "result" not in data:
        raise DecodeError("success response has no result", operation=operation)

    return decoder(data["result"], result_type, warnings, operation)


def decode_query_response(body: Body) -> QueryResponse:
    """Decode the body of an instant query."""
    return decode_envelope(body, operation="query")


def decode_query_range_response(body: Body) -> MatrixResponse:
    """
    Decode the body of a range query.

    Only ``matrix`` results are accepted; any other result type is a server
    contract violation and raises DecodeError.
    """
    response = decode_envelope(
        body,
        operation="query_range",
        accepted=(ResultType.MATRIX.value,),
    )
    if not isinstance(response, MatrixResponse):
        raise DecodeError(f"invalid response type {response.result_type}", operation="query_range")
    return response


def decode_metrics_response(body: Body) -> list[str]:
    """Decode the bare JSON array of metric names."""
    names = parse_json(body, "metrics")
    if not isinstance(names, list):
        raise DecodeError("expected an array of metric names", operation="metrics")
    for name in names:
        if not isinstance(name, str):
            raise DecodeError(f"metric name {name!r} is not a string", operation="metrics")
    return names
