import pytest

from fetchpipe.core.exceptions import (
    ConfigurationError,
    DecodeFailure,
    HTTPStatusError,
    NoBody,
    TransportFailure,
)
from fetchpipe.core.types import Failure, ResponseEnvelope, Success
from fetchpipe.pipeline.base import ErrorClassifier
from fetchpipe.pipeline.classifier import DefaultClassifier
from tests.helpers import http_envelope

pytestmark = pytest.mark.unit


class TestMissingMetadata:
    """Envelopes without an HTTP response always classify as TransportFailure."""

    @pytest.mark.parametrize(
        "envelope",
        [
            ResponseEnvelope(),
            ResponseEnvelope(body=b'{"id": 1}'),
            ResponseEnvelope(transport_error=ConnectionError("reset")),
            ResponseEnvelope(body=b"partial", transport_error=TimeoutError()),
        ],
    )
    def test_no_metadata_is_transport_failure(self, classifier, envelope):
        result = classifier.extract(envelope)

        assert isinstance(result, Failure)
        assert isinstance(result.error, TransportFailure)
        assert result.error.envelope is envelope

    def test_non_http_metadata_is_treated_as_missing(self, classifier):
        envelope = ResponseEnvelope(body=b"data", metadata={"status_code": 200})

        result = classifier.extract(envelope)

        assert isinstance(result, Failure)
        assert isinstance(result.error, TransportFailure)


class TestStatusCodes:
    @pytest.mark.parametrize("status", [200, 201, 204, 250, 299])
    def test_accepted_status_with_body_succeeds(self, classifier, status):
        result = classifier.extract(http_envelope(status, b"payload"))

        assert result == Success(b"payload")

    @pytest.mark.parametrize("status", [200, 299])
    def test_accepted_status_without_body_is_no_body(self, classifier, status):
        envelope = http_envelope(status, None)

        result = classifier.extract(envelope)

        assert isinstance(result, Failure)
        assert isinstance(result.error, NoBody)
        assert result.error.envelope is envelope

    @pytest.mark.parametrize("status", [0, 100, 199, 300, 304, 404, 500, 599])
    @pytest.mark.parametrize("body", [b"{}", None])
    def test_rejected_status_regardless_of_body(self, classifier, status, body):
        envelope = http_envelope(status, body)

        result = classifier.extract(envelope)

        assert isinstance(result, Failure)
        assert isinstance(result.error, HTTPStatusError)
        assert result.error.status_code == status
        assert result.error.envelope is envelope

    def test_empty_body_counts_as_present(self, classifier):
        assert classifier.extract(http_envelope(204, b"")) == Success(b"")

    def test_transport_error_does_not_override_http_metadata(self, classifier):
        envelope = http_envelope(200, b"ok", error=ConnectionResetError())

        assert classifier.extract(envelope) == Success(b"ok")


class TestCheckOrder:
    def test_status_check_precedes_body_check(self, classifier):
        result = classifier.extract(http_envelope(500, None))

        assert isinstance(result.error, HTTPStatusError)

    def test_metadata_check_precedes_everything(self, classifier):
        result = classifier.extract(ResponseEnvelope(body=None, metadata=object()))

        assert isinstance(result.error, TransportFailure)


class TestConfiguration:
    def test_custom_range(self):
        classifier = DefaultClassifier(accepted_status=(200, 399))

        assert classifier.extract(http_envelope(304, b"x")) == Success(b"x")
        assert isinstance(classifier.extract(http_envelope(400, b"x")).error, HTTPStatusError)

    def test_descending_range_rejected(self):
        with pytest.raises(ConfigurationError):
            DefaultClassifier(accepted_status=(299, 200))

    def test_from_settings(self):
        from fetchpipe.config import FetchSettings

        settings = FetchSettings(accepted_status_min=200, accepted_status_max=204)

        assert DefaultClassifier.from_settings(settings).accepted_status == (200, 204)


def test_from_decode_error_keeps_cause_and_envelope(classifier):
    envelope = http_envelope(200, b"not json")
    cause = ValueError("bad json")

    error = classifier.from_decode_error(cause, envelope)

    assert isinstance(error, DecodeFailure)
    assert error.cause is cause
    assert error.envelope is envelope
    assert error.__cause__ is cause


def test_extract_does_not_mutate_envelope(classifier):
    envelope = http_envelope(404, b"gone")
    before = (envelope.body, envelope.metadata, envelope.transport_error)

    classifier.extract(envelope)

    assert (envelope.body, envelope.metadata, envelope.transport_error) == before


def test_default_classifier_satisfies_protocol(classifier):
    assert isinstance(classifier, ErrorClassifier)
