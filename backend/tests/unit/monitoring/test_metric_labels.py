"""
Test that service and booking metrics carry the expected labels
"""
from unittest.mock import Mock

import pytest
from prometheus_client.parser import text_string_to_metric_families

from classbook.monitoring.prometheus_metrics import (
    REGISTRY,
    booking_transitions_total,
    bookings_rejected_total,
    errors_total,
    prometheus_metrics,
    service_operations_total,
)
from classbook.services.base import BaseService


def _sample_value(metric, name, **labels):
    for family in metric.collect():
        for sample in family.samples:
            if sample.name == name and all(sample.labels.get(k) == v for k, v in labels.items()):
                return sample.value
    return 0.0


class LabelProbeService(BaseService):
    @BaseService.measure_operation("probe")
    def probe(self, fail: bool = False):
        if fail:
            raise ValueError("boom")
        return "ok"


class TestServiceMetrics:
    def test_success_is_counted_per_service_and_operation(self):
        before = _sample_value(
            service_operations_total,
            "classbook_service_operations_total",
            service="LabelProbeService",
            operation="probe",
            status="success",
        )

        LabelProbeService(Mock()).probe()

        after = _sample_value(
            service_operations_total,
            "classbook_service_operations_total",
            service="LabelProbeService",
            operation="probe",
            status="success",
        )
        assert after == before + 1

    def test_failure_records_error_type(self):
        with pytest.raises(ValueError):
            LabelProbeService(Mock()).probe(fail=True)

        assert (
            _sample_value(
                errors_total,
                "classbook_errors_total",
                service="LabelProbeService",
                operation="probe",
                error_type="ValueError",
            )
            >= 1
        )

    def test_local_metrics_snapshot(self):
        service = LabelProbeService(Mock())
        service.reset_metrics()
        service.probe()

        metrics = service.get_metrics()
        assert metrics["probe"]["count"] == 1
        assert metrics["probe"]["success_rate"] == 1.0


class TestBookingMetrics:
    def test_rejection_reason_label(self):
        before = _sample_value(
            bookings_rejected_total, "classbook_bookings_rejected_total", reason="class_full"
        )
        prometheus_metrics.inc_booking_rejected("class_full")
        assert (
            _sample_value(bookings_rejected_total, "classbook_bookings_rejected_total", reason="class_full")
            == before + 1
        )

    def test_transition_labels(self):
        prometheus_metrics.inc_booking_transition("pending", "confirmed")
        assert (
            _sample_value(
                booking_transitions_total,
                "classbook_booking_transitions_total",
                from_status="pending",
                to_status="confirmed",
            )
            >= 1
        )

    def test_exposition_parses(self):
        prometheus_metrics.inc_schedule_conflict()
        families = {f.name for f in text_string_to_metric_families(prometheus_metrics.get_metrics().decode())}
        assert "classbook_schedule_conflicts" in families
        assert "classbook_bookings_created" in families
        assert prometheus_metrics.get_content_type().startswith("text/plain")


def test_metrics_use_private_registry():
    assert REGISTRY.get_sample_value("classbook_classes_scheduled_total") is not None
