import random
import statistics

import pytest

from playout.dither import (
    Ditherer,
    GaussianDitherer,
    HighPassDitherer,
    TriangularDitherer,
    find_ditherer,
)


@pytest.mark.parametrize(
    "name, cls",
    [("tpdf", TriangularDitherer), ("gpdf", GaussianDitherer), ("tpdf_hp", HighPassDitherer)],
)
def test_find_ditherer_by_name(name, cls):
    assert find_ditherer(name) is cls
    assert cls().name == name
    assert str(cls()) == name


@pytest.mark.parametrize("name", [None, "", "TPDF", "unknown"])
def test_find_ditherer_unknown(name):
    assert find_ditherer(name) is None


def test_base_class_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Ditherer()


@pytest.mark.parametrize("cls", [TriangularDitherer, GaussianDitherer, HighPassDitherer])
def test_seeded_rng_is_reproducible(cls):
    first = cls(random.Random(1234))
    second = cls(random.Random(1234))
    assert [first.noise() for _ in range(50)] == [second.noise() for _ in range(50)]


def test_triangular_noise_bounds_and_mean():
    ditherer = TriangularDitherer(random.Random(7))
    values = [ditherer.noise() for _ in range(20000)]
    assert all(-1.0 <= v <= 1.0 for v in values)
    assert statistics.fmean(values) == pytest.approx(0.0, abs=0.02)


def test_gaussian_noise_statistics():
    ditherer = GaussianDitherer(random.Random(11))
    values = [ditherer.noise() for _ in range(20000)]
    assert statistics.fmean(values) == pytest.approx(0.0, abs=0.02)
    assert statistics.pstdev(values) == pytest.approx(0.5, abs=0.02)


def test_high_pass_noise_bounds():
    ditherer = HighPassDitherer(random.Random(3))
    values = [ditherer.noise() for _ in range(10000)]
    assert all(-1.0 <= v <= 1.0 for v in values)


@pytest.mark.parametrize("channel", [0, 1])
def test_high_pass_noise_telescopes_per_channel(channel):
    ditherer = HighPassDitherer(random.Random(5))
    values = [ditherer.noise() for _ in range(2000)]
    running = 0.0
    for value in values[channel::2]:
        running += value
        # each partial sum collapses to the latest uniform draw
        assert -0.5 - 1e-9 <= running <= 0.5 + 1e-9