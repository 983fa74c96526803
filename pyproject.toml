[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "playout"
version = "0.1.0"
description = "Audio playback building blocks: sample conversion, dithering, volume mapping, software mixing, Ogg passthrough and output sinks"
requires-python = ">=3.10"
dependencies = []
keywords = ["audio", "playback", "dither", "pcm", "ogg", "vorbis", "mixer", "volume"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Players",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["playout"]

[tool.pytest.ini_options]
addopts = "-ra"
