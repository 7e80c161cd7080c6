from distarb.common import metrics
from distarb.common.models import ExecutionOutcome, PipelineReport
from distarb.visibility import metrics_exporter


def test_push_skipped_without_gateway():
    calls = []
    assert metrics_exporter.push_metrics(None, "distarb", pusher=lambda *a, **k: calls.append(a)) is False
    assert calls == []


def test_push_uses_registry():
    calls = []

    def pusher(url, job, registry):
        calls.append((url, job, registry))

    assert metrics_exporter.push_metrics("localhost:9091", "distarb", pusher=pusher) is True
    assert calls == [("localhost:9091", "distarb", metrics.REGISTRY)]


def test_push_failure_is_logged_not_raised():
    def pusher(url, job, registry):
        raise ConnectionRefusedError("refused")

    assert metrics_exporter.push_metrics("localhost:9091", "distarb", pusher=pusher) is False


def test_publish_outcome_counts_by_label():
    counter = metrics.PIPELINE_OUTCOMES.labels(outcome="user_declined")
    before = counter._value.get()
    metrics_exporter.publish_outcome(PipelineReport(outcome=ExecutionOutcome.USER_DECLINED, stage="confirm"))
    assert counter._value.get() == before + 1
