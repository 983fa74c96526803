"""Audio playback building blocks: conversion, dithering, volume mapping, mixing, Ogg passthrough and output sinks."""

__version__ = "0.1.0"