"""
Tests for the Integer Cost Evaluator

Saturating u64 evaluation and the zero-size special case. Integer results
must agree with the floating-point model on integral parameters.
"""

import pytest
from costmodel.evaluator import evaluate, saturating_add, saturating_mul
from costmodel.types import CostModel, QuantizedCostModel, U64_MAX


class TestEvaluate:

    def test_zero_size_is_const(self):
        """Zero-sized input costs only the fixed overhead."""
        for model in [
            QuantizedCostModel(0, 0),
            QuantizedCostModel(10, 1),
            QuantizedCostModel(U64_MAX, U64_MAX),
        ]:
            assert evaluate(model, 0) == model.const_param

    def test_affine(self):
        model = QuantizedCostModel(const_param=10, lin_param=1)

        assert evaluate(model, 1000) == 1010

    def test_constant_model(self):
        model = QuantizedCostModel(const_param=42, lin_param=0)

        assert evaluate(model, 1) == 42
        assert evaluate(model, 10 ** 12) == 42

    def test_saturates_on_multiplication(self):
        model = QuantizedCostModel(const_param=5, lin_param=U64_MAX)

        assert evaluate(model, 2) == U64_MAX

    def test_saturates_on_addition(self):
        model = QuantizedCostModel(const_param=U64_MAX, lin_param=1)

        assert evaluate(model, 1) == U64_MAX

    def test_max_size(self):
        model = QuantizedCostModel(const_param=0, lin_param=1)

        assert evaluate(model, U64_MAX) == U64_MAX

    @pytest.mark.parametrize("size", [-1, U64_MAX + 1])
    def test_size_outside_u64(self, size):
        with pytest.raises(ValueError):
            evaluate(QuantizedCostModel(1, 1), size)

    @pytest.mark.parametrize("size", [0, 1, 17, 4096, 10 ** 9])
    def test_matches_float_model(self, size):
        """Integer and float evaluation agree on integral parameters."""
        quantized = QuantizedCostModel(const_param=12, lin_param=3)
        real = CostModel(const_param=12.0, lin_param=3.0)

        assert evaluate(quantized, size) == int(real.evaluate(size))


class TestFloatEvaluate:

    def test_zero_and_non_finite_sizes(self):
        model = CostModel(const_param=1.5, lin_param=2.0)

        assert model.evaluate(0) == 1.5
        assert model.evaluate(float("inf")) == 1.5
        assert model.evaluate(float("nan")) == 1.5
        assert model.evaluate(2) == 5.5


class TestSaturatingHelpers:

    def test_add(self):
        assert saturating_add(1, 2) == 3
        assert saturating_add(U64_MAX, 1) == U64_MAX

    def test_mul(self):
        assert saturating_mul(3, 4) == 12
        assert saturating_mul(2 ** 32, 2 ** 32) == U64_MAX
