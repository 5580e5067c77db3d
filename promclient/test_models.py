"""
Tests for the typed result models and their text and CSV renderings.
"""

import csv
import io

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from promclient.models import (
    MatrixResponse,
    MatrixSeries,
    Metric,
    QueryResponse,
    Sample,
    ScalarResponse,
    VectorEntry,
    VectorResponse,
)
from promclient.render import format_csv, format_shortest, validate_delimiter


def parse_csv(text: str, delimiter: str = ",") -> list[list[str]]:
    """Parse rendered CSV back into rows."""
    return list(csv.reader(io.StringIO(text, newline=""), delimiter=delimiter))


class TestMetricString:
    """String form of label sets."""

    def test_name_is_hoisted_out_of_braces(self):
        metric = Metric({"job": "api", "__name__": "up"})
        assert str(metric) == 'up{job="api"}'

    def test_labels_are_sorted(self):
        metric = Metric({"__name__": "up", "job": "node", "instance": "a:9100"})
        assert str(metric) == 'up{instance="a:9100",job="node"}'

    def test_name_only(self):
        assert str(Metric({"__name__": "x"})) == "x"

    def test_no_name(self):
        assert str(Metric({"job": "api"})) == '{job="api"}'

    def test_empty(self):
        assert str(Metric({})) == "{}"

    def test_values_are_escaped(self):
        metric = Metric({"__name__": "m", "path": 'a"b\\c\nd'})
        assert str(metric) == 'm{path="a\\"b\\\\c\\nd"}'

    def test_tabs_and_carriage_returns_are_escaped(self):
        metric = Metric({"__name__": "m", "l": "a\tb\rc"})
        assert str(metric) == 'm{l="a\\tb\\rc"}'

    def test_label_order_is_kept_in_memory(self):
        labels = {"z": "1", "__name__": "m", "a": "2"}
        metric = Metric(labels)
        assert list(metric) == ["z", "__name__", "a"]
        assert dict(metric) == labels
        assert metric.name == "m"

    def test_metric_is_read_only(self):
        metric = Metric({"job": "api"})
        with pytest.raises(TypeError):
            metric["job"] = "other"  # type: ignore[index]

    def test_metric_does_not_alias_input(self):
        labels = {"job": "api"}
        metric = Metric(labels)
        labels["job"] = "changed"
        assert metric["job"] == "api"

    def test_equal_metrics_hash_equal(self):
        a = Metric({"a": "1", "b": "2"})
        b = Metric({"b": "2", "a": "1"})
        assert a == b
        assert hash(a) == hash(b)


class TestScalarRendering:
    """Scalar and string results."""

    def test_scalar_text(self):
        response = ScalarResponse(sample=Sample(1435781451.781, "1"))
        assert response.to_text() == "1"

    def test_scalar_csv(self):
        response = ScalarResponse(sample=Sample(1435781451.781, "1"))
        assert response.to_csv(",") == "1\n"

    def test_value_is_verbatim(self):
        response = ScalarResponse(sample=Sample(1.0, "+Inf"))
        assert response.to_text() == "+Inf"
        assert response.value == "+Inf"
        assert response.timestamp == 1.0

    def test_string_result_type(self):
        response = ScalarResponse(sample=Sample(1.0, "hello"), result_type="string")
        assert response.result_type == "string"
        assert response.to_dict() == {"result_type": "string", "timestamp": 1.0, "value": "hello"}


class TestVectorRendering:
    """Instant vector results."""

    @pytest.fixture
    def response(self) -> VectorResponse:
        return VectorResponse(entries=(
            VectorEntry(Metric({"__name__": "up", "job": "api"}), Sample(1435781451.781, "1")),
        ))

    def test_text(self, response: VectorResponse):
        assert response.to_text() == 'up{job="api"} 1@1435781451.781\n'

    def test_csv(self, response: VectorResponse):
        assert response.to_csv(",") == '"up{job=""api""}",1,1435781451.781\n'

    def test_csv_has_three_fields(self, response: VectorResponse):
        assert parse_csv(response.to_csv(",")) == [['up{job="api"}', "1", "1435781451.781"]]

    def test_text_pads_timestamp_to_milliseconds(self):
        response = VectorResponse(entries=(
            VectorEntry(Metric({"__name__": "a"}), Sample(10.0, "1")),
            VectorEntry(Metric({"__name__": "b"}), Sample(10.5, "2")),
        ))
        assert response.to_text() == "a 1@10.000\nb 2@10.500\n"

    def test_csv_timestamp_is_shortest(self):
        response = VectorResponse(entries=(
            VectorEntry(Metric({"__name__": "a"}), Sample(10.0, "1")),
            VectorEntry(Metric({"__name__": "b"}), Sample(10.25, "2")),
        ))
        assert response.to_csv(";") == "a;1;10\nb;2;10.25\n"

    def test_empty(self):
        response = VectorResponse()
        assert response.to_text() == ""
        assert response.to_csv() == ""
        assert len(response) == 0

    def test_iteration_follows_entry_order(self, response: VectorResponse):
        assert [entry.metric.name for entry in response] == ["up"]


class TestMatrixRendering:
    """Range vector results."""

    @pytest.fixture
    def response(self) -> MatrixResponse:
        return MatrixResponse(series=(
            MatrixSeries(Metric({"__name__": "x"}), (Sample(0.0, "1"), Sample(1.0, "2"))),
        ))

    def test_text(self, response: MatrixResponse):
        assert response.to_text() == "x 1@0.000  2@1.000 \n"

    def test_csv(self, response: MatrixResponse):
        assert response.to_csv(",") == "x,1@0.000 2@1.000\n"

    def test_multiple_series(self):
        response = MatrixResponse(series=(
            MatrixSeries(Metric({"__name__": "a"}), (Sample(1.5, "1"),)),
            MatrixSeries(Metric({"__name__": "b", "job": "j"}), (Sample(2.0, "NaN"),)),
        ))
        assert response.to_text() == 'a 1@1.500 \nb{job="j"} NaN@2.000 \n'
        assert parse_csv(response.to_csv("\t"), "\t") == [
            ["a", "1@1.500"],
            ['b{job="j"}', "NaN@2.000"],
        ]

    def test_series_without_samples(self):
        response = MatrixResponse(series=(MatrixSeries(Metric({"__name__": "x"})),))
        assert response.to_text() == "x \n"

    def test_to_dict(self, response: MatrixResponse):
        assert response.to_dict() == {
            "result_type": "matrix",
            "result": [{"metric": {"__name__": "x"}, "values": [[0.0, "1"], [1.0, "2"]]}],
        }


class TestFormatting:
    """Low-level formatting helpers."""

    @pytest.mark.parametrize("value,expected", [
        (0.0, "0"),
        (1.0, "1"),
        (1435781451.781, "1435781451.781"),
        (0.1, "0.1"),
        (1e16, "10000000000000000"),
        (1.5e-7, "0.00000015"),
        (-2.5, "-2.5"),
    ])
    def test_format_shortest(self, value: float, expected: str):
        assert format_shortest(value) == expected

    @given(st.floats(allow_nan=False, allow_infinity=False))
    @settings(max_examples=200)
    def test_format_shortest_round_trips(self, value: float):
        text = format_shortest(value)
        assert "e" not in text.lower()
        assert float(text) == value

    @pytest.mark.parametrize("delimiter", ["", ",,", '"', "\n", "\r"])
    def test_invalid_delimiters(self, delimiter: str):
        with pytest.raises(ValueError):
            validate_delimiter(delimiter)

    def test_csv_quotes_fields_with_delimiter(self):
        assert format_csv([["a;b", "c"]], ";") == '"a;b";c\n'

    def test_csv_doubles_quotes(self):
        assert format_csv([['say "hi"']]) == '"say ""hi"""\n'

    def test_csv_quotes_bare_carriage_return(self):
        text = format_csv([["a\rb", "c"]])

        assert text == '"a\rb","c"\n'
        assert parse_csv(text) == [["a\rb", "c"]]


# Values that force quoting in CSV output
tricky_text = st.text(
    alphabet=st.sampled_from(list('abc ,;|\t"\r\n12.')),
    min_size=0,
    max_size=20,
)
delimiters = st.sampled_from([",", ";", "|", "\t", " "])


class TestCsvSafety:
    """Rendered CSV parses back to the original fields."""

    @given(value=tricky_text, label=tricky_text, delimiter=delimiters)
    @settings(max_examples=100)
    def test_vector_csv_round_trip(self, value: str, label: str, delimiter: str):
        metric = Metric({"__name__": "m", "l": label})
        response = VectorResponse(entries=(VectorEntry(metric, Sample(12.5, value)),))

        rows = parse_csv(response.to_csv(delimiter), delimiter)

        assert rows == [[str(metric), value, "12.5"]]

    @given(value=tricky_text, delimiter=delimiters)
    @settings(max_examples=100)
    def test_scalar_csv_round_trip(self, value: str, delimiter: str):
        response = ScalarResponse(sample=Sample(1.0, value))

        rows = parse_csv(response.to_csv(delimiter), delimiter)

        assert rows == [[value]]

    @given(values=st.lists(tricky_text, min_size=1, max_size=4), delimiter=delimiters)
    @settings(max_examples=100)
    def test_matrix_csv_round_trip(self, values: list[str], delimiter: str):
        samples = tuple(Sample(float(i), v) for i, v in enumerate(values))
        response = MatrixResponse(series=(MatrixSeries(Metric({"__name__": "m"}), samples),))

        rows = parse_csv(response.to_csv(delimiter), delimiter)

        assert rows == [["m", " ".join(str(s) for s in samples)]]


def test_responses_must_implement_to_dict():
    class TextOnly(QueryResponse):
        result_type = "scalar"

        def to_text(self) -> str:
            return ""

        def to_csv(self, delimiter: str = ",") -> str:
            return ""

    with pytest.raises(TypeError):
        TextOnly()
