"""
packet_codec/types.py
Result types returned by the pipelines and the file-level operations.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from .errors import (
    ContainerIOError,
    EngineCreationError,
    InputShapeError,
    PacketCodecError,
    PacketDecodeError,
    PacketEncodeError,
)
from .metrics_utils import Throughput


class FailureKind(str, Enum):
    ENGINE_CREATION = "engine_creation"
    PACKET_ENCODE = "packet_encode"
    PACKET_DECODE = "packet_decode"
    CONTAINER_IO = "container_io"
    INPUT_SHAPE = "input_shape"


_ERRORS = {
    FailureKind.ENGINE_CREATION: EngineCreationError,
    FailureKind.PACKET_ENCODE: PacketEncodeError,
    FailureKind.PACKET_DECODE: PacketDecodeError,
    FailureKind.CONTAINER_IO: ContainerIOError,
    FailureKind.INPUT_SHAPE: InputShapeError,
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    # Buffer offset of the failing window/packet, when the failure is per-packet.
    index: Optional[int] = None

    def to_exception(self) -> PacketCodecError:
        return _ERRORS[self.kind](self.message)


@dataclass
class PipelineResult:
    """
    Output of a pipeline run.

    `output` always holds what was accumulated. When `failure` is set it only
    contains packets produced before the failing one and must not be used as
    a finished signal or feature matrix.
    """
    output: np.ndarray
    failure: Optional[Failure] = None
    metrics: Throughput = field(default_factory=lambda: Throughput(0.0, 0))

    @property
    def ok(self) -> bool:
        return self.failure is None

    def raise_for_status(self) -> "PipelineResult":
        if self.failure is not None:
            raise self.failure.to_exception()
        return self

    @classmethod
    def failed(cls, kind: FailureKind, message: str, output: np.ndarray,
               index: Optional[int] = None, metrics: Optional[Throughput] = None) -> "PipelineResult":
        return cls(
            output=output,
            failure=Failure(kind=kind, message=message, index=index),
            metrics=metrics if metrics is not None else Throughput(0.0, 0),
        )


@dataclass
class AudioData:
    """Interleaved int16 samples plus the metadata read from the container."""
    samples: np.ndarray
    num_channels: int
    sample_rate_hz: int

    @property
    def num_frames(self) -> int:
        return len(self.samples) // max(1, self.num_channels)

    @property
    def duration_seconds(self) -> float:
        return self.num_frames / self.sample_rate_hz if self.sample_rate_hz else 0.0
