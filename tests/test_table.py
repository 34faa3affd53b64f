"""
Tests for the Cost Model Table and batch calibration

Per-operation failures stay local; lookups of uncalibrated operations
fail instead of charging zero.
"""

import pytest
from costmodel.errors import (
    InvalidSampleSetError,
    NonMonotoneCostFitError,
    UncalibratedOperationError,
)
from costmodel.types import QuantizedCostModel, Sample
from metering.operations import CostType, operation_id
from metering.table import CostModelTable, calibrate


class TestCostModelTable:

    def test_lookup(self, sample_table):
        model = sample_table.lookup("ComputeSha256Hash")

        assert model == QuantizedCostModel(const_param=10, lin_param=1)

    def test_lookup_by_cost_type(self, sample_table):
        """CostType members and their string ids address the same entry."""
        assert sample_table.lookup(CostType.HOST_MEM_CPY) == sample_table.lookup("HostMemCpy")
        assert CostType.HOST_MEM_CPY in sample_table

    def test_uncalibrated_operation(self, sample_table):
        """Missing operations are a configuration error, never zero cost."""
        with pytest.raises(UncalibratedOperationError) as exc_info:
            sample_table.lookup(CostType.VERIFY_ED25519_SIG)

        assert exc_info.value.operation == "VerifyEd25519Sig"
        assert "not calibrated" in str(exc_info.value)

    def test_uncalibrated_is_key_error(self, sample_table):
        with pytest.raises(KeyError):
            sample_table.evaluate("NoSuchOp", 1)

    def test_evaluate(self, sample_table):
        assert sample_table.evaluate("ComputeSha256Hash", 1000) == 1010
        assert sample_table.evaluate("ComputeSha256Hash", 0) == 10
        assert sample_table.evaluate("ComputeEd25519PubKey", 5) == 42

    def test_entries_are_read_only(self, sample_table):
        with pytest.raises(TypeError):
            sample_table.entries["HostMemCpy"] = QuantizedCostModel(0, 0)

    def test_operations_sorted(self, sample_table):
        assert sample_table.operations() == sorted(sample_table.operations())
        assert len(sample_table) == 3

    def test_rejects_non_quantized_entries(self):
        with pytest.raises(TypeError):
            CostModelTable({"HostMemCpy": (1, 2)})

    def test_fingerprint_ignores_timestamp(self, sample_table):
        """Same entries, different calibration time: same fingerprint."""
        copy = CostModelTable(sample_table.entries, calibrated_at="2020-01-01T00:00:00+00:00")

        assert copy.fingerprint == sample_table.fingerprint
        assert copy == sample_table
        assert len(copy.fingerprint) == 64

    def test_fingerprint_changes_with_entries(self, sample_table):
        changed = dict(sample_table.entries)
        changed["HostMemCpy"] = QuantizedCostModel(const_param=0, lin_param=3)

        assert CostModelTable(changed).fingerprint != sample_table.fingerprint

    def test_canonicalize_is_deterministic(self):
        a = CostModelTable({"B": QuantizedCostModel(1, 2), "A": QuantizedCostModel(3, 4)})
        b = CostModelTable({"A": QuantizedCostModel(3, 4), "B": QuantizedCostModel(1, 2)})

        assert a.canonicalize() == b.canonicalize()

    def test_to_dict(self, sample_table):
        data = sample_table.to_dict()

        assert data["fingerprint"] == sample_table.fingerprint
        assert data["entries"]["ComputeSha256Hash"] == {"const_param": 10, "lin_param": 1}


class TestCalibrate:

    def test_end_to_end(self, samples_by_operation):
        """Samples -> fit -> quantize -> table -> evaluate."""
        report = calibrate(samples_by_operation)

        assert report.succeeded
        assert report.table.lookup("ComputeSha256Hash") == QuantizedCostModel(10, 1)
        assert report.table.evaluate("ComputeSha256Hash", 1000) == 1010
        assert report.models["ComputeSha256Hash"].r_squared == pytest.approx(1.0)

        assert report.table.lookup("ComputeEd25519PubKey") == QuantizedCostModel(42, 0)
        assert report.table.evaluate("ComputeEd25519PubKey", 0) == 42
        assert report.table.evaluate("ComputeEd25519PubKey", 123456) == 42

        # y = -5 + 2x is refit through the origin
        assert report.models["HostMemCpy"].const_param == 0.0
        assert report.table.lookup("HostMemCpy") == QuantizedCostModel(0, 2)

    def test_failures_do_not_abort_batch(self, samples_by_operation):
        samples = dict(samples_by_operation)
        samples["HostMemCmp"] = [(1, 30), (2, 20), (3, 10)]
        samples["ValSer"] = []
        samples["ValDeser"] = [(10, 15, 99), (20, 35, 99)]

        report = calibrate(samples)

        assert not report.succeeded
        assert set(report.failures) == {"HostMemCmp", "ValSer", "ValDeser"}
        assert isinstance(report.failures["HostMemCmp"].error, NonMonotoneCostFitError)
        assert isinstance(report.failures["ValSer"].error, InvalidSampleSetError)
        assert isinstance(report.failures["ValDeser"].error, InvalidSampleSetError)
        assert report.failures["HostMemCmp"].error_type == "NonMonotoneCostFitError"
        assert len(report.table) == 3

        with pytest.raises(UncalibratedOperationError):
            report.table.lookup("HostMemCmp")

    @pytest.mark.parametrize("workers", [None, 4])
    def test_malformed_entries_stay_local(self, workers):
        """Bad keys and bad sample shapes fail only their own operation."""
        report = calibrate(
            {
                "ComputeSha256Hash": [(100, 50), (200, 90), (300, 130)],
                "HostMemCpy": [(10, 15, 99), (20, 35, 99)],
                "": [(1, 2), (2, 4)],
                "ValSer": None,
            },
            workers=workers,
        )

        assert report.table.operations() == ["ComputeSha256Hash"]
        assert set(report.failures) == {"HostMemCpy", "", "ValSer"}
        assert all(isinstance(f.error, InvalidSampleSetError) for f in report.failures.values())

    def test_low_fit_quality_flagged(self):
        """Fits below the review threshold are kept but flagged."""
        noisy = [(1, 10), (2, 100), (3, 12), (4, 90), (5, 14), (6, 200)]

        report = calibrate({"VisitObject": noisy})

        assert "VisitObject" in report.table
        assert report.needs_review == ["VisitObject"]
        assert report.models["VisitObject"].r_squared < 0.9

    def test_constant_models_never_flagged(self):
        report = calibrate({"NumOp": [(0, 5), (0, 7), (0, 6)]})

        assert report.needs_review == []
        assert report.models["NumOp"].r_squared == 0.0

    def test_parallel_matches_serial(self, samples_by_operation):
        serial = calibrate(samples_by_operation)
        parallel = calibrate(samples_by_operation, workers=4)

        assert parallel.table == serial.table
        assert parallel.models == serial.models

    def test_accepts_sample_objects_and_cost_types(self):
        report = calibrate({
            CostType.HOST_MEM_ALLOC: [Sample(16, 26), Sample(32, 42), Sample(64, 74)],
        })

        assert report.table.lookup("HostMemAlloc") == QuantizedCostModel(10, 1)

    def test_build(self, samples_by_operation):
        table = CostModelTable.build(samples_by_operation)

        assert table == calibrate(samples_by_operation).table

    def test_summary(self, samples_by_operation):
        samples = dict(samples_by_operation)
        samples["HostMemCmp"] = [(1, 30), (2, 20), (3, 10)]

        summary = calibrate(samples).summary()

        assert summary["calibrated"] == 3
        assert summary["failed"] == 1
        assert summary["failures"][0]["operation"] == "HostMemCmp"


class TestOperations:

    def test_operation_id(self):
        assert operation_id(CostType.PRNG_DRAW) == "PrngDraw"
        assert operation_id("Custom") == "Custom"
        assert str(CostType.NUM_OP) == "NumOp"

    @pytest.mark.parametrize("value", ["", None, 3])
    def test_invalid_operation_id(self, value):
        with pytest.raises(ValueError):
            operation_id(value)
