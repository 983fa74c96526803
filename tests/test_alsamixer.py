import pytest

from playout.alsamixer import AlsaMixer, MixerElement
from playout.config import VolumeCtrl, VolumeCtrlKind
from playout.mixer import MixerConfig

MAX = VolumeCtrl.MAX_VOLUME
MUTE_MB = -9999999


class FakeElement(MixerElement):
    def __init__(
        self,
        raw_range=(0, 100),
        db_range=(-6000, 0),
        softvol=False,
        softvol_range=(-6000, 0),
        has_switch=False,
        switch_fails=False,
        ask_value=-5000,
    ):
        self.raw_range = raw_range
        self.db_range = db_range
        self.softvol = softvol
        self.softvol_range = softvol_range
        self.has_switch = has_switch
        self.switch_fails = switch_fails
        self.ask_value = ask_value
        self.asked = []
        self.switch = 1
        self.raw = raw_range[0]
        self.db_mb = db_range[1]

    def has_playback_switch(self):
        return self.has_switch

    def get_playback_switch(self):
        if self.switch_fails:
            raise OSError("no switch")
        return self.switch

    def set_playback_switch_all(self, value):
        self.switch = value

    def get_playback_volume_range(self):
        return self.raw_range

    def get_playback_volume(self):
        return self.raw

    def set_playback_volume_all(self, value):
        self.raw = value

    def get_playback_db_range(self):
        return self.db_range

    def get_playback_vol_db(self):
        if self.softvol:
            raise OSError("softvol")
        return self.db_mb

    def ask_playback_vol_db(self, raw_volume):
        self.asked.append(raw_volume)
        return self.ask_value

    def set_playback_db_all(self, millibel):
        self.db_mb = millibel

    def get_softvol_db_range(self):
        return self.softvol_range


def make(element, volume_ctrl=None):
    config = MixerConfig(volume_ctrl=volume_ctrl or VolumeCtrl())
    return AlsaMixer(config, lambda _config: element)


def test_hardware_full_volume():
    element = FakeElement()
    mixer = make(element)
    assert not mixer.is_softvol
    assert not mixer.use_linear_in_db
    mixer.set_volume(MAX)
    assert element.db_mb == 0
    assert mixer.volume() == MAX


def test_hardware_zero_volume_without_switch_is_mute():
    element = FakeElement()
    mixer = make(element)
    mixer.set_volume(0)
    assert element.db_mb == MUTE_MB
    assert mixer.volume() == 0


@pytest.mark.parametrize("volume", [1000, 20000, 40000, 60000])
def test_hardware_log_round_trip(volume):
    mixer = make(FakeElement())
    mixer.set_volume(volume)
    assert abs(mixer.volume() - volume) <= 20


def test_switch_mutes_and_unmutes():
    element = FakeElement(has_switch=True)
    mixer = make(element)
    mixer.set_volume(0)
    assert element.switch == 0
    assert mixer.volume() == 0
    mixer.set_volume(MAX)
    assert element.switch == 1
    assert mixer.volume() == MAX


def test_failing_switch_counts_as_on():
    element = FakeElement(has_switch=True, switch_fails=True)
    mixer = make(element)
    mixer.set_volume(MAX)
    assert mixer.volume() == MAX


def test_small_range_forces_linear_in_db():
    element = FakeElement(db_range=(-2000, 0))
    mixer = make(element)
    assert mixer.use_linear_in_db
    assert mixer.config.volume_ctrl.kind is VolumeCtrlKind.LINEAR
    mixer.set_volume(MAX)
    assert element.db_mb == 0
    assert mixer.volume() >= MAX - 1


def test_mute_minimum_workaround():
    element = FakeElement(raw_range=(0, 100), db_range=(MUTE_MB, 0), ask_value=-5000)
    mixer = make(element)
    assert element.asked == [1]
    assert mixer.min_db == -50.0
    assert mixer.db_range == 50.0


def test_softvol_rounding_fix():
    element = FakeElement(raw_range=(0, 255), softvol=True, softvol_range=(-6000, -135))
    mixer = make(element)
    assert mixer.is_softvol
    assert mixer.max_db == 0.0
    assert mixer.db_range == 60.0


def test_softvol_suspect_maximum_kept():
    element = FakeElement(raw_range=(0, 255), softvol=True, softvol_range=(-6000, -1000))
    mixer = make(element)
    assert mixer.max_db == -10.0


def test_softvol_full_volume_sets_raw_max():
    element = FakeElement(raw_range=(0, 255), softvol=True, softvol_range=(-6000, 0))
    mixer = make(element)
    mixer.set_volume(MAX)
    assert element.raw == 255


def test_zero_range_control_takes_mixer_range():
    ctrl = VolumeCtrl(VolumeCtrlKind.LOG, 0.0)
    element = FakeElement(db_range=(-6000, 0))
    mixer = make(element, ctrl)
    assert mixer.config.volume_ctrl.decibel_range == 60.0
    assert ctrl.decibel_range == 0.0