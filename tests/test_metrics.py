# File: tests/test_metrics.py
from silverfish.metrics import Metrics


def test_as_dict_contains_all_counters():
    m = Metrics()
    m.requests_started += 3
    m.requests_ok += 2
    m.requests_errored += 1
    data = m.as_dict()
    assert data["requests_started"] == 3
    assert data["requests_ok"] == 2
    assert data["requests_errored"] == 1
    assert data["domains_started"] == 0
    assert "started_at" not in data
    assert data["elapsed_seconds"] >= 0


def test_log_summary_does_not_raise():
    Metrics(domains_started=2, domains_finished=2, phones_found=4).log_summary()
