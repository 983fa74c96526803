import pytest

from playout.convert import Converter
from playout.dither import TriangularDitherer


class _ConstantDitherer:
    name = "const"

    def __init__(self, value):
        self.value = value

    def noise(self):
        return self.value


def test_s16_bounds_saturate():
    conv = Converter(None)
    assert conv.f64_to_s16([1.0, -1.0, 0.0]) == [32767, -32768, 0]


def test_s32_bounds_saturate():
    conv = Converter(None)
    assert conv.f64_to_s32([1.0, -1.0]) == [2**31 - 1, -(2**31)]


def test_s24_clamped():
    conv = Converter(None)
    assert conv.f64_to_s24([1.0, -1.0]) == [8388607, -8388608]


def test_s24_3_matches_s24():
    conv = Converter(None)
    samples = [0.3, -0.7, 1.0, -1.0, 0.0]
    packed = conv.f64_to_s24_3(samples)
    unpacked = [int.from_bytes(b, "little", signed=True) for b in packed]
    assert unpacked == conv.f64_to_s24(samples)
    assert all(len(b) == 3 for b in packed)


def test_f32_roundtrip_exact_values():
    conv = Converter(None)
    assert conv.f64_to_f32([0.5, -0.25]) == [0.5, -0.25]


def test_dither_added_before_rounding():
    conv = Converter(lambda: _ConstantDitherer(0.6))
    assert conv.scale(0.0, Converter.SCALE_S16) == 1.0
    conv_neg = Converter(lambda: _ConstantDitherer(-0.6))
    assert conv_neg.scale(0.0, Converter.SCALE_S16) == -1.0


def test_clamping_with_dither():
    conv = Converter(lambda: _ConstantDitherer(5.0))
    assert conv.clamping_scale(1.0, Converter.SCALE_S24) == Converter.SCALE_S24 - 1.0


@pytest.mark.parametrize("sample", [-1.0, -0.5, 0.0, 0.25, 0.999])
def test_triangular_dither_stays_close(sample):
    conv = Converter(TriangularDitherer)
    exact = sample * Converter.SCALE_S16
    assert abs(conv.f64_to_s16([sample])[0] - exact) <= 2