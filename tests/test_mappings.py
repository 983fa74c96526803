import pytest

from playout.gain import db_to_ratio
from playout.mappings import CubicMapping, LogMapping

RANGES = [10.0, 24.0, 60.0, 96.0]
VOLUMES = [0.0, 0.1, 0.33, 0.5, 0.75, 0.99, 1.0]


@pytest.mark.parametrize("db_range", RANGES)
@pytest.mark.parametrize("volume", VOLUMES)
def test_log_round_trip(db_range, volume):
    mapped = LogMapping.linear_to_mapped(volume, db_range)
    assert LogMapping.mapped_to_linear(mapped, db_range) == pytest.approx(
        volume, abs=1e-9
    )


@pytest.mark.parametrize("db_range", RANGES)
@pytest.mark.parametrize("volume", VOLUMES)
def test_cubic_round_trip(db_range, volume):
    mapped = CubicMapping.linear_to_mapped(volume, db_range)
    assert CubicMapping.mapped_to_linear(mapped, db_range) == pytest.approx(
        volume, abs=1e-9
    )


@pytest.mark.parametrize("db_range", RANGES)
def test_log_full_volume_maps_to_unity(db_range):
    assert LogMapping.linear_to_mapped(1.0, db_range) == pytest.approx(1.0)


@pytest.mark.parametrize("db_range", RANGES)
def test_cubic_full_volume_maps_to_unity(db_range):
    assert CubicMapping.linear_to_mapped(1.0, db_range) == pytest.approx(1.0)


@pytest.mark.parametrize("db_range", RANGES)
def test_log_zero_volume_sits_at_bottom_of_range(db_range):
    assert LogMapping.linear_to_mapped(0.0, db_range) == pytest.approx(
        db_to_ratio(-db_range)
    )


@pytest.mark.parametrize("db_range", RANGES)
def test_cubic_zero_volume_sits_at_bottom_of_range(db_range):
    assert CubicMapping.linear_to_mapped(0.0, db_range) == pytest.approx(
        db_to_ratio(-db_range)
    )


def test_log_mapping_is_increasing():
    mapped = [LogMapping.linear_to_mapped(v, 60.0) for v in VOLUMES]
    assert mapped == sorted(mapped)
    assert len(set(mapped)) == len(mapped)


def test_cubic_mapping_is_increasing():
    mapped = [CubicMapping.linear_to_mapped(v, 60.0) for v in VOLUMES]
    assert mapped == sorted(mapped)
    assert len(set(mapped)) == len(mapped)


def test_log_mapping_halfway_is_half_range_in_db():
    mapped = LogMapping.linear_to_mapped(0.5, 60.0)
    assert mapped == pytest.approx(db_to_ratio(-30.0))


def test_cubic_mapping_of_negative_amplitude_fails():
    with pytest.raises(ValueError):
        CubicMapping.mapped_to_linear(-0.5, 60.0)