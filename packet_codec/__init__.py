"""
packet_codec
============

This package exposes:
- Codec configuration and packet sizing (`CodecConfig`, `packet_size_bytes`, `samples_per_packet`)
- Codec engines (`CodecEngine`, `TorchScriptEngine`, `export_engine`)
- Encode/decode pipelines (`encode_samples`, `decode_features`, `PipelineResult`)
- File-level operations (`encode_file`, `decode_file`)
- Container I/O (`read_wav`, `write_wav`, `save_features`, `load_features`)
"""

# === Configuration ===
from .config import CodecConfig
from .framing import packet_size_bytes, samples_per_frame, samples_per_packet

# === Engines and preprocessing ===
from .engine import CodecEngine, TorchScriptEngine, export_engine
from .preprocessing import Preprocessor, NoOpPreprocessor, HighPassPreprocessor

# === Pipelines ===
from .pipeline import encode_samples, decode_features
from .types import AudioData, Failure, FailureKind, PipelineResult
from .metrics_utils import Throughput

# === Files ===
from .orchestration import encode_file, decode_file
from .container_io import read_wav, write_wav, save_features, load_features

# === Errors ===
from .errors import (
    PacketCodecError,
    InvalidConfigError,
    EngineCreationError,
    PacketEncodeError,
    PacketDecodeError,
    ContainerIOError,
    InputShapeError,
)

__all__ = [
    # Configuration
    "CodecConfig",
    "packet_size_bytes",
    "samples_per_frame",
    "samples_per_packet",
    # Engines
    "CodecEngine",
    "TorchScriptEngine",
    "export_engine",
    "Preprocessor",
    "NoOpPreprocessor",
    "HighPassPreprocessor",
    # Pipelines
    "encode_samples",
    "decode_features",
    "AudioData",
    "Failure",
    "FailureKind",
    "PipelineResult",
    "Throughput",
    # Files
    "encode_file",
    "decode_file",
    "read_wav",
    "write_wav",
    "save_features",
    "load_features",
    # Errors
    "PacketCodecError",
    "InvalidConfigError",
    "EngineCreationError",
    "PacketEncodeError",
    "PacketDecodeError",
    "ContainerIOError",
    "InputShapeError",
]
