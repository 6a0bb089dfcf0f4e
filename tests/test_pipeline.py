from __future__ import annotations

import logging

import pytest

from job_assist.completion import ServiceUnavailableError
from job_assist.pipeline import PipelineResult, PreconditionError, Status, run
from job_assist.shapes import Field, Shape

pytestmark = pytest.mark.unit

ANALYSIS_SHAPE = Shape("analysis", {
    "score":   Field(float, min_value=0, max_value=100, clamp=True),
    "overall": Field(str),
})

FALLBACK = {"score": 50, "overall": "Could not analyse automatically."}


def _prompt() -> str:
    return "Analyse this CV."


def test_fenced_reply_is_a_genuine_result(fake_client) -> None:
    client = fake_client(
        "Sure! Here's the analysis:\n```json\n{\"score\": 75, \"overall\": \"Good fit\"}\n```"
    )

    result = run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=client, model="llama3.2")

    assert result.value == {"score": 75, "overall": "Good fit"}
    assert result.status is Status.SUCCEEDED
    assert result.fallback is False


def test_service_unavailable_returns_fallback_without_raising(fake_client, caplog) -> None:
    client = fake_client(ServiceUnavailableError("connection refused"))

    with caplog.at_level(logging.WARNING, logger="job_assist.pipeline"):
        result = run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=client, model="llama3.2")

    assert result.value == FALLBACK
    assert result.status is Status.SERVICE_UNAVAILABLE
    assert "connection refused" in result.reason
    assert "completion service unavailable" in caplog.text


@pytest.mark.parametrize(
    "reply, reason_prefix",
    [
        ("I cannot answer that.", "no_json"),
        ('{"score": 75, "overall": "cut off', "unbalanced"),
        ("{score: 75}", "syntax"),
    ],
)
def test_extraction_failures_become_malformed_output(fake_client, reply, reason_prefix) -> None:
    result = run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=fake_client(reply), model="m")

    assert result.value == FALLBACK
    assert result.status is Status.MALFORMED_OUTPUT
    assert result.reason.startswith(reason_prefix)


def test_validation_failure_becomes_malformed_output(fake_client, caplog) -> None:
    client = fake_client('{"score": "high", "overall": "Good"}')

    with caplog.at_level(logging.WARNING, logger="job_assist.pipeline"):
        result = run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=client, model="m")

    assert result.value == FALLBACK
    assert result.status is Status.MALFORMED_OUTPUT
    assert "'score' must be a number" in caplog.text


def test_clamped_score_still_succeeds(fake_client) -> None:
    result = run(
        ANALYSIS_SHAPE, _prompt, FALLBACK,
        client=fake_client('{"score": 150, "overall": "Great"}'), model="m",
    )

    assert result.status is Status.SUCCEEDED
    assert result.value["score"] == 100


def test_huge_integer_score_is_clamped_not_raised(fake_client) -> None:
    reply = '{"score": 1' + "0" * 400 + ', "overall": "x"}'

    result = run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=fake_client(reply), model="m")

    assert result.status is Status.SUCCEEDED
    assert result.value["score"] == 100


@pytest.mark.parametrize(
    "reply",
    [
        'Sure: {"score": 1' + "0" * 5000 + ', "overall": "x"}',
        'Sure: {"score": 1, "overall": "x", "extra": ' + "[" * 100000 + "]" * 100000 + "}",
    ],
    ids=["very-long-integer", "deep-nesting"],
)
def test_pathological_json_never_escapes_run(fake_client, reply) -> None:
    result = run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=fake_client(reply), model="m")

    # older interpreters parse any integer length, the clamp then applies
    assert result.status in (Status.MALFORMED_OUTPUT, Status.SUCCEEDED)
    assert result.value in (FALLBACK, {"score": 100, "overall": "x"})


def test_precondition_error_propagates_before_any_call(fake_client) -> None:
    client = fake_client('{"score": 1, "overall": "x"}')

    def build() -> str:
        raise PreconditionError("application is required")

    with pytest.raises(PreconditionError):
        run(ANALYSIS_SHAPE, build, FALLBACK, client=client, model="m")

    assert client.calls == []


def test_fallback_is_copied_so_callers_cannot_corrupt_it(fake_client) -> None:
    fallback = {"score": 50, "overall": "n/a", "tags": []}
    shape = Shape("t", {**ANALYSIS_SHAPE.fields, "tags": Field(list)})

    first = run(shape, _prompt, fallback, client=fake_client("nope"), model="m")
    first.value["tags"].append("mutated")

    assert fallback["tags"] == []


def test_prompt_model_and_system_reach_the_client(fake_client) -> None:
    client = fake_client('{"score": 1, "overall": "x"}')

    run(ANALYSIS_SHAPE, _prompt, FALLBACK, client=client, model="phi3", system="Be terse.")

    assert client.calls == [{"prompt": "Analyse this CV.", "model": "phi3", "system": "Be terse."}]


def test_request_and_raw_reply_are_written_to_audit_logs(fake_client, llm_log_files) -> None:
    requests_log, responses_log = llm_log_files

    run(
        ANALYSIS_SHAPE, _prompt, FALLBACK,
        client=fake_client("not json at all"), model="m", feature="cv_check",
    )

    assert "Analyse this CV." in requests_log.read_text(encoding="utf-8")
    logged = responses_log.read_text(encoding="utf-8")
    assert "not json at all" in logged
    assert "Feature   : cv_check" in logged


def test_result_serialises_for_json_responses() -> None:
    result = PipelineResult(value={"a": 1}, status=Status.MALFORMED_OUTPUT, reason="syntax")

    assert result.to_dict() == {"data": {"a": 1}, "status": "malformed_output", "fallback": True}
