"""Tests for internmatch.errors — error kinds, hints and serialisation."""

import pytest

from internmatch.errors import HINTS, AnalysisError, ErrorKind, ExtractionError, InternMatchError, ServiceError


class TestErrorKind:
    @pytest.mark.parametrize("kind", [ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.TIMEOUT])
    def test_transient_kinds_are_retryable(self, kind: ErrorKind):
        assert kind.retryable

    @pytest.mark.parametrize(
        "kind",
        [k for k in ErrorKind if k not in (ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.TIMEOUT)],
    )
    def test_other_kinds_are_permanent(self, kind: ErrorKind):
        assert not kind.retryable

    def test_every_kind_has_a_hint(self):
        assert set(HINTS) == set(ErrorKind)
        assert all(hint.strip() for hint in HINTS.values())

    def test_values_are_stable_names(self):
        assert ErrorKind.NO_EXTRACTABLE_TEXT.value == "NoExtractableText"
        assert ErrorKind("Encrypted") is ErrorKind.ENCRYPTED


class TestInternMatchError:
    def test_carries_kind_message_and_hint(self):
        err = ExtractionError(ErrorKind.TOO_SHORT, "Extracted text is too short (12 characters)")
        assert err.kind is ErrorKind.TOO_SHORT
        assert err.message == "Extracted text is too short (12 characters)"
        assert err.hint == "Please ensure you are uploading a complete resume."
        assert str(err) == err.message
        assert not err.retryable

    def test_detail_defaults_to_cause(self):
        cause = RuntimeError("boom")
        err = ServiceError(ErrorKind.SERVICE_UNAVAILABLE, "down", cause=cause)
        assert err.detail == "boom"
        assert err.cause is cause
        assert err.retryable

    def test_explicit_detail_wins(self):
        err = ServiceError(ErrorKind.TIMEOUT, "slow", detail="60s", cause=RuntimeError("x"))
        assert err.detail == "60s"

    def test_to_dict(self):
        err = AnalysisError(ErrorKind.INVALID_JOB, "Job listing must have company and title")
        data = err.to_dict()
        assert data == {
            "error_type": "AnalysisError",
            "kind": "InvalidJob",
            "message": "Job listing must have company and title",
            "hint": HINTS[ErrorKind.INVALID_JOB],
        }

    def test_to_dict_includes_detail(self):
        err = ExtractionError(ErrorKind.EMPTY, "empty", detail="42 bytes")
        assert err.to_dict()["detail"] == "42 bytes"

    def test_subclasses_share_base(self):
        for cls in (ExtractionError, AnalysisError, ServiceError):
            assert issubclass(cls, InternMatchError)

    def test_repr(self):
        err = ExtractionError(ErrorKind.ENCRYPTED, "locked")
        assert repr(err) == "ExtractionError(kind='Encrypted', message='locked')"
