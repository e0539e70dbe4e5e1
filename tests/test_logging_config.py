"""Tests for structured logging helpers."""

import logging

from app.core.logging_config import (
    ContextIdFilter,
    generate_request_id,
    generate_run_id,
    request_id_var,
    run_id_var,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)


def test_filter_injects_context_ids() -> None:
    request_token = request_id_var.set("req-1")
    run_token = run_id_var.set("run-abc")
    try:
        record = _record()
        assert ContextIdFilter().filter(record) is True
        assert record.request_id == "req-1"  # type: ignore[attr-defined]
        assert record.run_id == "run-abc"  # type: ignore[attr-defined]
    finally:
        request_id_var.reset(request_token)
        run_id_var.reset(run_token)


def test_filter_defaults_to_empty() -> None:
    record = _record()
    ContextIdFilter().filter(record)
    assert record.run_id == ""  # type: ignore[attr-defined]


def test_generated_ids() -> None:
    assert len(generate_request_id()) == 16
    run_id = generate_run_id()
    assert run_id.startswith("run-")
    assert run_id != generate_run_id()
