"""
Tests for the Quantizer

Round to one decimal, then ceiling. Never below the rounded real value.
"""

import math
import pytest
from costmodel.quantizer import quantize, quantize_param, round_to_one_decimal
from costmodel.errors import NegativeParameterError, QuantizationError
from costmodel.types import CostModel, QuantizedCostModel, U64_MAX


class TestQuantizeParam:
    """Single parameter quantization."""

    @pytest.mark.parametrize("value,expected", [
        (0.0, 0),
        (0.4, 1),
        (10.0, 10),
        (10.000000000000004, 10),
        (9.999999999999998, 10),
        (1.01, 1),
        (1.06, 2),
        (0.04, 0),
        (42.0, 42),
        (1833.3333333333333, 1834),
    ])
    def test_round_then_ceil(self, value, expected):
        assert quantize_param(value) == expected

    @pytest.mark.parametrize("value", [0.0, 0.04, 0.05001, 0.4, 1.25, 3.14159, 99.95, 1e6 + 0.3])
    def test_never_below_rounded_value(self, value):
        """Quantized value is an int at or above the one-decimal rounding."""
        quantized = quantize_param(value)

        assert isinstance(quantized, int)
        assert quantized >= round_to_one_decimal(value)
        assert quantized == math.ceil(round_to_one_decimal(value))

    def test_negative_rejected(self):
        """Negative parameters are a configuration error, not clamped."""
        with pytest.raises(NegativeParameterError) as exc_info:
            quantize_param(-0.5, "const_param")

        assert exc_info.value.name == "const_param"
        assert exc_info.value.value == -0.5

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(QuantizationError):
            quantize_param(value)

    def test_above_u64_rejected(self):
        with pytest.raises(QuantizationError):
            quantize_param(float(2 ** 64))


class TestQuantizeModel:
    """Whole-model quantization."""

    def test_end_to_end_parameters(self):
        """const 10, lin 0.4 quantizes to const 10, lin 1."""
        model = CostModel(const_param=10.000000000000004, lin_param=0.39999999999999997, r_squared=1.0)

        assert quantize(model) == QuantizedCostModel(const_param=10, lin_param=1)

    def test_constant_model(self):
        model = CostModel(const_param=42.0, lin_param=0.0, r_squared=0.0)

        assert quantize(model) == QuantizedCostModel(const_param=42, lin_param=0)

    def test_negative_intercept_rejected(self):
        model = CostModel(const_param=-5.0, lin_param=2.0, r_squared=1.0)

        with pytest.raises(NegativeParameterError):
            quantize(model)


class TestQuantizedCostModel:
    """Integer model validation."""

    def test_accepts_u64_bounds(self):
        model = QuantizedCostModel(const_param=0, lin_param=U64_MAX)

        assert model.lin_param == U64_MAX

    @pytest.mark.parametrize("const,lin", [(-1, 0), (0, U64_MAX + 1)])
    def test_rejects_out_of_range(self, const, lin):
        with pytest.raises(ValueError):
            QuantizedCostModel(const_param=const, lin_param=lin)

    @pytest.mark.parametrize("value", [1.0, "1", True])
    def test_rejects_non_int(self, value):
        with pytest.raises(TypeError):
            QuantizedCostModel(const_param=value, lin_param=0)

    def test_dict_round_trip(self):
        model = QuantizedCostModel(const_param=7, lin_param=U64_MAX)

        assert QuantizedCostModel.from_dict(model.to_dict()) == model
