"""
packet_codec/orchestration.py
File-level encode/decode: bind a pipeline to the WAV and feature-matrix
containers.

The engine is created before any file is touched. Collaborator failures
come back as failed results; nothing here retries.
"""

from __future__ import annotations
import os
import logging
from typing import Callable, Optional

import numpy as np

from .config import FEATURES_KEY, NUM_CHANNELS, SAMPLE_RATE_HZ, BITRATE
from .container_io import read_wav, write_wav, save_features, load_features, conform_audio
from .engine import CodecEngine, TorchScriptEngine
from .errors import ContainerIOError, EngineCreationError
from .metrics_utils import log_throughput
from .pipeline import encode_samples, decode_features, validate_packet_loss
from .preprocessing import NoOpPreprocessor, Preprocessor
from .types import FailureKind, PipelineResult

log = logging.getLogger(__name__)

EngineFactory = Callable[..., CodecEngine]


def _create_engine(factory: EngineFactory, **kwargs) -> tuple[Optional[CodecEngine], Optional[PipelineResult]]:
    try:
        return factory(**kwargs), None
    except EngineCreationError as e:
        log.error("Could not create codec engine: %s", e)
        return None, PipelineResult.failed(FailureKind.ENGINE_CREATION, str(e), output=np.zeros(0))


def _io_failure(e: ContainerIOError, output: np.ndarray) -> PipelineResult:
    log.error("%s", e)
    return PipelineResult.failed(FailureKind.CONTAINER_IO, str(e), output=output)


# ===============================
# ENCODE
# ===============================
def encode_file(
    wav_path: str | os.PathLike,
    output_path: str | os.PathLike,
    model_path: str | os.PathLike,
    sample_rate_hz: int = SAMPLE_RATE_HZ,
    num_channels: int = NUM_CHANNELS,
    bitrate: int = BITRATE,
    enable_preprocessing: bool = False,
    preprocessor: Optional[Preprocessor] = None,
    enable_dtx: bool = False,
    engine_factory: EngineFactory = TorchScriptEngine.create,
    read_audio: Callable = read_wav,
    write_features: Callable = save_features,
    progress: bool = False,
) -> PipelineResult:
    """
    WAV file → .npz feature matrix of shape [num_packets, num_features].

    Input audio is downmixed/resampled to the engine's format. With
    `enable_preprocessing` and no explicit `preprocessor`, the identity
    preprocessor is used.
    """
    engine, failed = _create_engine(
        engine_factory,
        sample_rate_hz=sample_rate_hz,
        num_channels=num_channels,
        bitrate=bitrate,
        enable_dtx=enable_dtx,
        model_path=model_path,
    )
    if failed is not None:
        return failed
    config = engine.codec_config()

    try:
        audio = read_audio(wav_path)
    except ContainerIOError as e:
        return _io_failure(e, np.zeros(0, dtype=np.float32))
    log.info("Read %s (%.2f s)", wav_path, audio.duration_seconds,
             extra={"num_channels": audio.num_channels, "sample_rate_hz": audio.sample_rate_hz})

    try:
        samples = conform_audio(audio, config.num_channels, config.sample_rate_hz)
    except ValueError as e:
        log.error("Cannot conform %s to the engine format: %s", wav_path, e)
        return PipelineResult.failed(FailureKind.INPUT_SHAPE, str(e), output=np.zeros(0, dtype=np.float32))

    if enable_preprocessing and preprocessor is None:
        preprocessor = NoOpPreprocessor()

    result = encode_samples(samples, config, engine, preprocessor=preprocessor, progress=progress)
    log_throughput(log, "encode", result.metrics)
    if not result.ok:
        log.error("Unable to encode features for file %s: %s", wav_path, result.failure.message)
        return result

    packets = result.output.size // config.num_features
    log.info("Encoded %d packets", packets,
             extra={"packet_size_bytes": config.packet_size_bytes, "nominal_bitrate": config.nominal_bitrate})

    try:
        write_features(output_path, result.output, (packets, config.num_features), key=FEATURES_KEY, mode="w")
    except ContainerIOError as e:
        return _io_failure(e, result.output)
    return result


# ===============================
# DECODE
# ===============================
def decode_file(
    encoded_path: str | os.PathLike,
    output_path: str | os.PathLike,
    model_path: str | os.PathLike,
    sample_rate_hz: int = SAMPLE_RATE_HZ,
    packet_loss_rate: float = 0.0,
    average_burst_length: float = 1.0,
    num_channels: int = NUM_CHANNELS,
    bitrate: int = BITRATE,
    engine_factory: EngineFactory = TorchScriptEngine.create,
    read_features: Callable = load_features,
    write_audio: Callable = write_wav,
    progress: bool = False,
) -> PipelineResult:
    """.npz feature matrix → WAV file in the engine's channel count and sample rate."""
    validate_packet_loss(packet_loss_rate, average_burst_length)
    engine, failed = _create_engine(
        engine_factory,
        sample_rate_hz=sample_rate_hz,
        num_channels=num_channels,
        bitrate=bitrate,
        enable_dtx=False,
        model_path=model_path,
    )
    if failed is not None:
        return failed
    config = engine.codec_config()

    try:
        features, shape = read_features(encoded_path, key=FEATURES_KEY)
    except ContainerIOError as e:
        return _io_failure(e, np.zeros(0, dtype=np.int16))
    log.info("Loaded features shape: %s", shape)

    if len(shape) != 2 or shape[-1] != config.num_features:
        message = f"Stored features have shape {tuple(shape)}, expected [num_packets, {config.num_features}]"
        log.error("%s", message)
        return PipelineResult.failed(FailureKind.INPUT_SHAPE, message, output=np.zeros(0, dtype=np.int16))

    result = decode_features(
        features, config, engine,
        packet_loss_rate=packet_loss_rate,
        average_burst_length=average_burst_length,
        progress=progress,
    )
    log_throughput(log, "decode", result.metrics)
    if not result.ok:
        log.error("Unable to decode features for file %s: %s", encoded_path, result.failure.message)
        return result

    try:
        write_audio(output_path, engine.num_channels, engine.sample_rate_hz, result.output)
    except ContainerIOError as e:
        return _io_failure(e, result.output)
    return result
