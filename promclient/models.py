"""
Data models for decoded Prometheus query results.

This module defines the typed result shapes returned by the client:

- ScalarResponse for ``scalar`` and ``string`` results
- VectorResponse for instant vectors
- MatrixResponse for range vectors

All of them are immutable and render themselves as human text
(``to_text``) or delimited text (``to_csv``).
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, Optional

from .render import format_csv, format_shortest, format_timestamp, quote_label_value

METRIC_NAME_LABEL = "__name__"


class Status(Enum):
    """Envelope status reported by Prometheus."""

    SUCCESS = "success"
    ERROR = "error"


class ResultType(Enum):
    """Discriminator of the ``data.result`` shape."""

    SCALAR = "scalar"
    STRING = "string"
    VECTOR = "vector"
    MATRIX = "matrix"


@dataclass(frozen=True)
class Sample:
    """
    A single ``(timestamp, value)`` pair.

    Attributes:
        timestamp: UNIX timestamp in seconds, possibly fractional
        value: Sample value exactly as sent by the server (``"NaN"``,
            ``"+Inf"`` and arbitrary precision included)
    """

    timestamp: float
    value: str

    def __str__(self) -> str:
        return f"{self.value}@{format_timestamp(self.timestamp)}"


class Metric(Mapping):
    """
    Read-only set of labels identifying a series.

    Labels keep the order in which the server sent them. The string form
    hoists the metric name in front of the braces and sorts the remaining
    labels, e.g. ``up{instance="a:9100",job="node"}``.
    """

    def __init__(self, labels: Optional[Mapping[str, str]] = None):
        self._labels = MappingProxyType(dict(labels or {}))

    def __getitem__(self, key: str) -> str:
        return self._labels[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __hash__(self) -> int:
        return hash(frozenset(self._labels.items()))

    def __repr__(self) -> str:
        return f"Metric({dict(self._labels)!r})"

    @property
    def name(self) -> Optional[str]:
        """The value of the ``__name__`` label, if present."""
        return self._labels.get(METRIC_NAME_LABEL)

    def __str__(self) -> str:
        name = self.name
        pairs = sorted(
            f"{label}={quote_label_value(value)}"
            for label, value in self._labels.items()
            if label != METRIC_NAME_LABEL
        )
        if not pairs:
            return name if name is not None else "{}"
        return f"{name or ''}{{{','.join(pairs)}}}"


class QueryResponse(ABC):
    """Common interface of all decoded query results."""

    result_type: str

    @abstractmethod
    def to_text(self) -> str:
        """Render the result as human-readable text."""

    @abstractmethod
    def to_csv(self, delimiter: str = ",") -> str:
        """Render the result as delimited text."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a plain dictionary."""


@dataclass(frozen=True)
class ScalarResponse(QueryResponse):
    """Result of a query whose ``resultType`` is ``scalar`` or ``string``."""

    sample: Sample
    result_type: str = ResultType.SCALAR.value
    warnings: tuple[str, ...] = ()

    @property
    def value(self) -> str:
        return self.sample.value

    @property
    def timestamp(self) -> float:
        return self.sample.timestamp

    def to_text(self) -> str:
        return self.sample.value

    def to_csv(self, delimiter: str = ",") -> str:
        return format_csv([[self.sample.value]], delimiter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "result_type": self.result_type,
            "timestamp": self.sample.timestamp,
            "value": self.sample.value,
        }


@dataclass(frozen=True)
class VectorEntry:
    """One series of an instant vector."""

    metric: Metric
    sample: Sample


@dataclass(frozen=True)
class VectorResponse(QueryResponse):
    """Result of a query whose ``resultType`` is ``vector``."""

    result_type: ClassVar[str] = ResultType.VECTOR.value

    entries: tuple[VectorEntry, ...] = ()
    warnings: tuple[str, ...] = ()

    def __iter__(self) -> Iterator[VectorEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_text(self) -> str:
        return "".join(f"{entry.metric} {entry.sample}\n" for entry in self.entries)

    def to_csv(self, delimiter: str = ",") -> str:
        rows = [
            [str(entry.metric), entry.sample.value, format_shortest(entry.sample.timestamp)]
            for entry in self.entries
        ]
        return format_csv(rows, delimiter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "result_type": self.result_type,
            "result": [
                {
                    "metric": dict(entry.metric),
                    "timestamp": entry.sample.timestamp,
                    "value": entry.sample.value,
                }
                for entry in self.entries
            ],
        }


@dataclass(frozen=True)
class MatrixSeries:
    """One series of a range vector, samples in chronological order."""

    metric: Metric
    samples: tuple[Sample, ...] = ()


@dataclass(frozen=True)
class MatrixResponse(QueryResponse):
    """Result of a query whose ``resultType`` is ``matrix``."""

    result_type: ClassVar[str] = ResultType.MATRIX.value

    series: tuple[MatrixSeries, ...] = ()
    warnings: tuple[str, ...] = ()

    def __iter__(self) -> Iterator[MatrixSeries]:
        return iter(self.series)

    def __len__(self) -> int:
        return len(self.series)

    def to_text(self) -> str:
        # Every sample token keeps a trailing space before the join, so
        # consecutive samples are separated by two spaces.
        lines = []
        for series in self.series:
            values = " ".join(f"{sample} " for sample in series.samples)
            lines.append(f"{series.metric} {values}\n")
        return "".join(lines)

    def to_csv(self, delimiter: str = ",") -> str:
        rows = [
            [str(series.metric), " ".join(str(sample) for sample in series.samples)]
            for series in self.series
        ]
        return format_csv(rows, delimiter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "result_type": self.result_type,
            "result": [
                {
                    "metric": dict(series.metric),
                    "values": [[s.timestamp, s.value] for s in series.samples],
                }
                for series in self.series
            ],
        }
