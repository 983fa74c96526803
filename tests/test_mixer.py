import pytest

from playout.config import VolumeCtrl, VolumeCtrlKind
from playout.mixer import MixerConfig, SoftMixer, find_mixer


def test_find_mixer():
    assert find_mixer(None) is SoftMixer
    assert find_mixer("softvol") is SoftMixer
    assert find_mixer("nope") is None


def test_default_config():
    cfg = MixerConfig()
    assert (cfg.device, cfg.control, cfg.index) == ("default", "PCM", 0)


@pytest.mark.parametrize("kind", list(VolumeCtrlKind))
@pytest.mark.parametrize("volume", [0, 1000, 32768, 60000, VolumeCtrl.MAX_VOLUME])
def test_volume_roundtrip(kind, volume):
    mixer = SoftMixer(MixerConfig(volume_ctrl=VolumeCtrl(kind)))
    mixer.set_volume(volume)
    assert abs(mixer.volume() - volume) <= 1


def test_filter_tracks_volume():
    mixer = SoftMixer(MixerConfig(volume_ctrl=VolumeCtrl(VolumeCtrlKind.LINEAR)))
    audio_filter = mixer.get_audio_filter()
    mixer.set_volume(0)
    data = [0.5, -0.5]
    audio_filter.modify_stream(data)
    assert data == [0.0, -0.0]

    mixer.set_volume(VolumeCtrl.MAX_VOLUME)
    data = [0.5, -0.5]
    audio_filter.modify_stream(data)
    assert data == [0.5, -0.5]


def test_filter_scales_down():
    mixer = SoftMixer(MixerConfig())
    data = [1.0]
    mixer.get_audio_filter().modify_stream(data)
    assert data == [0.5]


def test_out_of_range_volume():
    with pytest.raises(ValueError):
        SoftMixer(MixerConfig()).set_volume(VolumeCtrl.MAX_VOLUME + 1)