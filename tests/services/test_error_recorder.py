"""
Tests for ErrorRecorder -- persistence and resolution of error entries.

Covers:
- record(): persisted fields, optional sale link
- flag_sale() / clear_sale_error_flag()
- resolve_error(), resolve_all_for_sale(), list_unresolved()
"""

from uuid import uuid4

import pytest

from salesos_kernel.domain.errors import ErrorEntry, ErrorSeverity, ErrorTrigger, ErrorType
from salesos_kernel.exceptions import ErrorRecordNotFoundError, SaleNotFoundError
from salesos_kernel.models.error_record import ErrorRecord
from salesos_services.error_recorder import ErrorRecorder


@pytest.fixture
def recorder(session, deterministic_clock):
    return ErrorRecorder(session, deterministic_clock)


@pytest.fixture
def make_entry(deterministic_clock):
    def _make(message="Commissionable margin cannot be negative", **overrides):
        values = dict(
            severity=ErrorSeverity.HIGH,
            source="commission-engine",
            message=(message,),
            timestamp=deterministic_clock.now(),
            error_type=ErrorType.COMMISSION,
            triggered_by=ErrorTrigger.COMMISSION_ENGINE,
            metadata={"commissionable_margin": "-10.00"},
        )
        values.update(overrides)
        return ErrorEntry(**values)

    return _make


class TestRecord:
    def test_persists_all_fields(self, recorder, make_sale, make_entry, session):
        sale = make_sale()

        info = recorder.record(make_entry(), sale.id)

        row = session.get(ErrorRecord, info.id)
        assert row.sale_id == sale.id
        assert row.error_type == "commission"
        assert row.severity == "high"
        assert row.source == "commission-engine"
        assert row.message == ["Commissionable margin cannot be negative"]
        assert row.triggered_by == "commission_engine"
        assert row.error_metadata == {"commissionable_margin": "-10.00"}
        assert row.resolved is False

    def test_entry_without_sale(self, recorder, make_entry):
        info = recorder.record(make_entry())

        assert info.sale_id is None
        assert info.message == ("Commissionable margin cannot be negative",)

    def test_logs_the_entry(self, recorder, make_entry, captured_logs):
        recorder.record(make_entry())

        logged = [r for r in captured_logs() if r["message"] == "error_recorded"]
        assert logged[0]["error_type"] == "commission"
        assert logged[0]["severity"] == "high"

    def test_entry_to_dict(self, make_entry, deterministic_clock):
        payload = make_entry().to_dict()

        assert payload["severity"] == "high"
        assert payload["message"] == ["Commissionable margin cannot be negative"]
        assert payload["timestamp"] == deterministic_clock.now().isoformat()


class TestSaleFlag:
    def test_flag_and_clear(self, recorder, make_sale):
        sale = make_sale()

        recorder.flag_sale(sale.id, ["VAT mismatch"])
        assert sale.error_flag is True
        assert sale.error_message == ["VAT mismatch"]

        recorder.clear_sale_error_flag(sale.id)
        assert sale.error_flag is False
        assert sale.error_message == []

    def test_unknown_sale(self, recorder):
        with pytest.raises(SaleNotFoundError):
            recorder.flag_sale(uuid4(), ["x"])
        with pytest.raises(SaleNotFoundError):
            recorder.clear_sale_error_flag(uuid4())


class TestResolution:
    def test_resolve_error(self, recorder, make_sale, make_entry, deterministic_clock):
        sale = make_sale()
        info = recorder.record(make_entry(), sale.id)
        recorder.flag_sale(sale.id, ["x"])

        resolved = recorder.resolve_error(info.id, "ops@example.com", "Band assigned")

        assert resolved.resolved
        assert resolved.resolved_by == "ops@example.com"
        assert resolved.resolved_at == deterministic_clock.now()
        assert resolved.resolved_notes == "Band assigned"
        # resolving never clears the sale flag
        assert sale.error_flag is True

    def test_resolve_unknown_error(self, recorder):
        with pytest.raises(ErrorRecordNotFoundError):
            recorder.resolve_error(uuid4(), "ops")

    def test_list_unresolved(self, recorder, make_sale, make_entry, deterministic_clock):
        first, second = make_sale(), make_sale()
        a = recorder.record(make_entry("a"), first.id)
        deterministic_clock.tick()
        b = recorder.record(make_entry("b", timestamp=deterministic_clock.now()), first.id)
        recorder.record(make_entry("c"), second.id)
        recorder.resolve_error(a.id, "ops")

        assert [e.id for e in recorder.list_unresolved(first.id)] == [b.id]
        assert len(recorder.list_unresolved()) == 2

    def test_resolve_all_for_sale(self, recorder, make_sale, make_entry):
        sale, other = make_sale(), make_sale()
        ids = {recorder.record(make_entry(m), sale.id).id for m in ("a", "b")}
        recorder.record(make_entry("c"), other.id)

        resolved = recorder.resolve_all_for_sale(sale.id, "ops")

        assert set(resolved) == ids
        assert recorder.list_unresolved(sale.id) == []
        assert len(recorder.list_unresolved(other.id)) == 1
