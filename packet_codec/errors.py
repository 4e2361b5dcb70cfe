"""
packet_codec/errors.py
Exception taxonomy shared by the pipelines, the engines and the container I/O.
"""

from __future__ import annotations


class PacketCodecError(Exception):
    """Base error for the packet codec pipeline."""


class InvalidConfigError(PacketCodecError, ValueError):
    """Raised when a codec configuration cannot describe a valid packet layout."""


class EngineCreationError(PacketCodecError):
    """Raised when the codec engine cannot be constructed."""


class PacketEncodeError(PacketCodecError):
    """Raised when the engine fails to encode a window of samples."""


class PacketDecodeError(PacketCodecError):
    """Raised when the engine rejects a packet or fails to produce samples."""


class ContainerIOError(PacketCodecError, OSError):
    """Raised when reading or writing an audio or feature container fails."""


class InputShapeError(PacketCodecError, ValueError):
    """Raised when a feature buffer is not a whole number of packets."""
