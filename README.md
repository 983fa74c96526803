# playout

Building blocks for a streaming audio player, in plain Python with no
third-party dependencies.

## Modules

- `playout.config`: playback settings and constants (`SAMPLE_RATE` is 44100,
  `NUM_CHANNELS` is 2). `Bitrate`, `AudioFormat`, `NormalisationType` and
  `NormalisationMethod` are enums. Each has a `parse` classmethod that raises
  `ValueError` on unknown text. `AudioFormat.size()` gives bytes per sample.
  `PlayerConfig` is a dataclass of player defaults. `VolumeCtrl` maps a volume
  in `0..VolumeCtrl.MAX_VOLUME` (65535) onto an amplitude in `0..1` and back,
  with `to_mapped` and `from_mapped`. Its `kind` is a `VolumeCtrlKind`: `LOG`
  (the default, 60 dB), `CUBIC`, `LINEAR` or `FIXED`.
- `playout.gain`: `db_to_ratio` and `ratio_to_db`.
- `playout.mappings`: the `LogMapping` and `CubicMapping` volume curves.
- `playout.dither`: `TriangularDitherer` (`"tpdf"`), `GaussianDitherer`
  (`"gpdf"`) and `HighPassDitherer` (`"tpdf_hp"`). Each takes an optional
  `random.Random`. `find_ditherer(name)` returns the class for a name, or
  `None`.
- `playout.convert`: `Converter(ditherer_builder=None)` turns float samples in
  `-1.0..=1.0` into F32, S32, S24 or S16 values, or into S24_3 three-byte
  chunks. It rounds half away from zero and saturates. Dithering is applied
  when a ditherer builder is given.
- `playout.decoder`: `AudioPacket` holds either samples or raw Ogg data.
  Asking for the kind it does not hold raises `AudioPacketError`. Also here:
  `DecoderError` and the `AudioDecoder` interface (`seek`, `next_packet`).
- `playout.ogg`: `PacketReader` and `PacketWriter` read and write Ogg pages,
  with `page_checksum` and the `OggReadError` and `NoCapturePatternFound`
  errors.
- `playout.passthrough`: `PassthroughDecoder` re-muxes an Ogg Vorbis stream
  without decoding it. It writes fresh headers and renumbers granule positions
  relative to the last seek.
- `playout.mixer`: `MixerConfig` and the `Mixer` and `AudioFilter`
  interfaces. `SoftMixer` (`"softvol"`) is a software volume control, and its
  `get_audio_filter()` scales samples in place. `find_mixer(name)` returns a
  mixer factory; `None` gives the default, `SoftMixer`.
- `playout.alsamixer`: `AlsaMixer(config, element_factory)` is a volume
  control over a `MixerElement`. You implement `MixerElement`, with dB values
  in millibel.
- `playout.sinks`: the `Sink` and `BytesSink` interfaces, and the error types
  `SinkError`, `SinkNotConnectedError`, `SinkConnectionRefusedError`,
  `SinkWriteError` and `SinkInvalidParamsError`. `StdoutSink` (`"pipe"`)
  writes raw PCM to standard output or to an existing file or pipe.
  `SubprocessSink` (`"subprocess"`) starts a command and writes PCM to its
  standard input. `find_backend(name)` returns a sink class; `None` gives
  `StdoutSink`.
- `playout.alsa_sink`: `AlsaSink(device, audio_format, pcm_opener)` collects
  data into whole periods and writes them to a `Pcm`. `open_device`,
  `choose_buffer_size` and `choose_period_size` pick buffer and period sizes
  within the ranges the device reports.

## Example

```python
from playout.config import AudioFormat
from playout.convert import Converter
from playout.decoder import AudioPacket
from playout.dither import find_ditherer
from playout.sinks import StdoutSink

open("out.raw", "wb").close()  # StdoutSink does not create files

sink = StdoutSink("out.raw", AudioFormat.S16)
sink.start()
sink.write(AudioPacket.samples_from_f32([0.0, 0.5, -0.5, 0.25]),
           Converter(find_ditherer("tpdf")))
sink.stop()
```

Output is interleaved stereo at 44.1 kHz, in native byte order.

## What it does not do

- There is no command-line player and no streaming client. The package
  provides the parts, not a program that plays tracks.
- It does not decode Vorbis to samples. `PassthroughDecoder` only re-muxes
  Ogg data.
- It does not talk to a sound card itself. `AlsaMixer` and `AlsaSink` work
  through the `MixerElement`, `Pcm` and `HwParams` interfaces, which you
  implement for your audio system.

## Tests

```
pip install -e .[test]
pytest
```