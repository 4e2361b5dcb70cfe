"""
packet_codec/pipeline.py
Encode and decode pipelines: chunk a buffer into fixed packets, drive the
codec engine one packet at a time and accumulate the results.

Both pipelines stop at the first failing packet. The returned result keeps
the packets produced before the failure and the throughput of the run.
"""

from __future__ import annotations
import logging
from typing import Optional, Tuple

import numpy as np
from tqdm.auto import tqdm

from .config import CodecConfig
from .engine import CodecEngine
from .framing import iter_windows, num_packets
from .metrics_utils import Stopwatch
from .preprocessing import Preprocessor
from .types import FailureKind, PipelineResult

log = logging.getLogger(__name__)


def _concat(chunks: list, dtype) -> np.ndarray:
    if not chunks:
        return np.zeros(0, dtype=dtype)
    return np.concatenate(chunks).astype(dtype, copy=False)


# ===============================
# ENCODE
# ===============================
def encode_samples(
    samples: np.ndarray,
    config: CodecConfig,
    engine: CodecEngine,
    preprocessor: Optional[Preprocessor] = None,
    progress: bool = False,
) -> PipelineResult:
    """
    Encode an int16 sample buffer into a flat float32 feature vector.

    Windows of `config.samples_per_packet` samples are encoded in order; a
    trailing window shorter than that is dropped. Throughput is reported
    against the number of input samples.
    """
    samples = np.asarray(samples, dtype=np.int16).reshape(-1)
    window = config.samples_per_packet
    packets: list = []
    failed_at: Optional[int] = None

    with Stopwatch() as sw:
        processed = samples
        if preprocessor is not None:
            processed = np.asarray(preprocessor.process(samples, config.sample_rate_hz), dtype=np.int16)

        total = num_packets(len(processed), window)
        with tqdm(total=total, desc="Encoding", unit="packet", disable=not progress, leave=False) as pbar:
            for start, chunk in iter_windows(processed, window):
                packet = engine.encode_window(chunk)
                if packet is not None:
                    packet = np.asarray(packet, dtype=np.float32).reshape(-1)
                if packet is None or packet.size != config.num_features:
                    failed_at = start
                    break
                packets.append(packet)
                pbar.update(1)

    metrics = sw.throughput(len(samples))
    output = _concat(packets, np.float32)

    if failed_at is not None:
        return PipelineResult.failed(
            FailureKind.PACKET_ENCODE,
            f"Unable to encode features starting at sample {failed_at}",
            output=output,
            index=failed_at,
            metrics=metrics,
        )

    dropped = len(processed) - total * window
    if dropped:
        log.debug("dropped %d trailing samples shorter than one packet", dropped)
    return PipelineResult(output=output, metrics=metrics)


# ===============================
# DECODE
# ===============================
def validate_packet_loss(packet_loss_rate: float, average_burst_length: float) -> None:
    if not 0.0 <= packet_loss_rate <= 1.0:
        raise ValueError(f"packet_loss_rate must be in [0, 1], got {packet_loss_rate}")
    if average_burst_length < 1.0:
        raise ValueError(f"average_burst_length must be >= 1, got {average_burst_length}")


def decode_features(
    features: np.ndarray,
    config: CodecConfig,
    engine: CodecEngine,
    packet_loss_rate: float = 0.0,
    average_burst_length: float = 1.0,
    progress: bool = False,
) -> PipelineResult:
    """
    Decode a flat feature vector, `config.num_features` values per packet,
    into int16 samples. The vector must hold a whole number of packets.

    The packet-loss parameters configure the engine's own concealment; they
    do not change how the vector is chunked.
    """
    validate_packet_loss(packet_loss_rate, average_burst_length)
    features = np.asarray(features, dtype=np.float32)
    width = config.num_features
    empty = np.zeros(0, dtype=np.int16)

    if features.ndim != 1:
        return PipelineResult.failed(
            FailureKind.INPUT_SHAPE, f"Expected a flat feature vector, got shape {features.shape}", output=empty)
    if features.size % width != 0:
        return PipelineResult.failed(
            FailureKind.INPUT_SHAPE,
            f"Feature vector of length {features.size} is not a multiple of the packet width {width}",
            output=empty,
        )

    if not engine.configure_packet_loss(packet_loss_rate, average_burst_length) and packet_loss_rate > 0:
        log.warning("engine has no packet loss hook; packet_loss_rate=%.3f is ignored", packet_loss_rate)

    count = config.samples_per_packet
    blocks: list = []
    failure: Optional[Tuple[int, str]] = None

    with Stopwatch() as sw:
        with tqdm(total=features.size // width, desc="Decoding", unit="packet",
                  disable=not progress, leave=False) as pbar:
            for start, packet in iter_windows(features, width):
                if not engine.set_encoded_packet(packet):
                    failure = (start, f"Unable to set encoded packet starting at feature {start}")
                    break
                block = engine.decode_samples(count)
                if block is None or len(block) != count:
                    failure = (start, f"Unable to decode features starting at feature {start}")
                    break
                blocks.append(np.asarray(block, dtype=np.int16).reshape(-1))
                pbar.update(1)

    output = _concat(blocks, np.int16)
    metrics = sw.throughput(len(output))

    if failure is not None:
        start, message = failure
        return PipelineResult.failed(
            FailureKind.PACKET_DECODE, message, output=output, index=start, metrics=metrics)
    return PipelineResult(output=output, metrics=metrics)
