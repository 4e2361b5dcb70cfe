"""
packet_codec/engine.py
Codec engine contract driven by the pipelines, and a TorchScript-backed
implementation loaded from an exported model directory.

Model directory layout:
    encoder.pt   scripted module, (1, samples_per_packet) float → num_features floats
    decoder.pt   scripted module, (1, num_features) float → decoded float samples
    engine.json  frame_rate / frames_per_packet / num_features
"""

from __future__ import annotations
import os
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import torch

from .config import CodecConfig, SUPPORTED_SAMPLE_RATES
from .errors import EngineCreationError
from .pcm_utils import pcm_to_float, float_to_pcm, rms

log = logging.getLogger(__name__)

ENCODER_FILE = "encoder.pt"
DECODER_FILE = "decoder.pt"
MANIFEST_FILE = "engine.json"

# Windows quieter than this (RMS on the [-1, 1) scale) are not run through the
# encoder when DTX is enabled.
DTX_RMS_THRESHOLD = 1e-4


# ===============================
# CONTRACT
# ===============================
class CodecEngine(ABC):
    """Single-packet codec engine. Pipelines call it one window/packet at a time."""

    def __init__(self, config: CodecConfig):
        self.config = config

    @property
    def bitrate(self) -> int:
        return self.config.bitrate

    @property
    def frame_rate(self) -> int:
        return self.config.frame_rate

    @property
    def sample_rate_hz(self) -> int:
        return self.config.sample_rate_hz

    @property
    def num_channels(self) -> int:
        return self.config.num_channels

    @property
    def num_features(self) -> int:
        return self.config.num_features

    @property
    def frames_per_packet(self) -> int:
        return self.config.frames_per_packet

    def codec_config(self) -> CodecConfig:
        return self.config

    @abstractmethod
    def encode_window(self, window: np.ndarray) -> Optional[np.ndarray]:
        """Encode exactly `samples_per_packet` int16 samples into one packet, or None."""

    @abstractmethod
    def set_encoded_packet(self, packet: np.ndarray) -> bool:
        """Queue one packet of `num_features` floats for decoding."""

    @abstractmethod
    def decode_samples(self, count: int) -> Optional[np.ndarray]:
        """Return `count` decoded int16 samples, or None."""

    def configure_packet_loss(self, packet_loss_rate: float, average_burst_length: float) -> bool:
        """Hook for engine-side loss concealment. Returns False when unsupported."""
        return False


# ===============================
# TORCHSCRIPT ENGINE
# ===============================
class TorchScriptEngine(CodecEngine):
    def __init__(
        self,
        config: CodecConfig,
        encoder: torch.jit.ScriptModule,
        decoder: torch.jit.ScriptModule,
        enable_dtx: bool = False,
        device: str = "cpu",
    ):
        super().__init__(config)
        self.encoder = encoder
        self.decoder = decoder
        self.enable_dtx = enable_dtx
        self.device = torch.device(device)
        self._pending = np.zeros(0, dtype=np.float32)

    @classmethod
    def create(
        cls,
        sample_rate_hz: int,
        num_channels: int,
        bitrate: int,
        enable_dtx: bool,
        model_path: str | os.PathLike,
        device: str | None = None,
    ) -> "TorchScriptEngine":
        """
        Load an exported engine. Raises EngineCreationError if the requested
        stream cannot be served by the model directory.
        """
        if sample_rate_hz not in SUPPORTED_SAMPLE_RATES:
            raise EngineCreationError(
                f"Unsupported sample rate {sample_rate_hz} Hz; expected one of {SUPPORTED_SAMPLE_RATES}"
            )
        if num_channels != 1:
            raise EngineCreationError(f"Only mono is supported, got {num_channels} channels")
        if bitrate <= 0:
            raise EngineCreationError(f"Bitrate must be positive, got {bitrate}")

        model_dir = os.fspath(model_path)
        paths = {name: os.path.join(model_dir, name) for name in (ENCODER_FILE, DECODER_FILE, MANIFEST_FILE)}
        missing = [p for p in paths.values() if not os.path.isfile(p)]
        if missing:
            raise EngineCreationError(f"Model files not found: {', '.join(missing)}")

        try:
            with open(paths[MANIFEST_FILE], "r", encoding="utf-8") as f:
                manifest = json.load(f)
            config = CodecConfig(
                sample_rate_hz=sample_rate_hz,
                num_channels=num_channels,
                bitrate=bitrate,
                frame_rate=int(manifest["frame_rate"]),
                frames_per_packet=int(manifest["frames_per_packet"]),
                num_features=int(manifest["num_features"]),
            )
        except (OSError, KeyError, TypeError, ValueError) as e:
            raise EngineCreationError(f"Invalid engine manifest {paths[MANIFEST_FILE]}: {e}") from e

        device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        try:
            encoder = torch.jit.load(paths[ENCODER_FILE], map_location=device)
            decoder = torch.jit.load(paths[DECODER_FILE], map_location=device)
        except (RuntimeError, ValueError) as e:
            raise EngineCreationError(f"Could not load TorchScript modules from {model_dir}: {e}") from e
        encoder.eval()
        decoder.eval()

        log.info("engine loaded", extra={"model_path": model_dir, "device": device,
                                         "sample_rate_hz": sample_rate_hz, "dtx": enable_dtx})
        return cls(config, encoder, decoder, enable_dtx=enable_dtx, device=device)

    # ===============================
    # ENCODE
    # ===============================
    def encode_window(self, window: np.ndarray) -> Optional[np.ndarray]:
        window = np.asarray(window, dtype=np.int16)
        if window.size != self.config.samples_per_packet:
            log.error("window has %d samples, expected %d", window.size, self.config.samples_per_packet)
            return None

        if self.enable_dtx and rms(window) < DTX_RMS_THRESHOLD:
            return np.zeros(self.num_features, dtype=np.float32)

        x = torch.from_numpy(pcm_to_float(window)).unsqueeze(0).to(self.device)
        try:
            with torch.no_grad():
                y = self.encoder(x)
        except RuntimeError as e:
            log.error("encoder module failed: %s", e)
            return None

        packet = y.detach().reshape(-1).cpu().numpy().astype(np.float32)
        if packet.size != self.num_features:
            log.error("encoder produced %d features, expected %d", packet.size, self.num_features)
            return None
        return packet

    # ===============================
    # DECODE
    # ===============================
    def set_encoded_packet(self, packet: np.ndarray) -> bool:
        packet = np.asarray(packet, dtype=np.float32).reshape(-1)
        if packet.size != self.num_features or not np.all(np.isfinite(packet)):
            return False

        x = torch.from_numpy(packet.copy()).unsqueeze(0).to(self.device)
        try:
            with torch.no_grad():
                y = self.decoder(x)
        except RuntimeError as e:
            log.error("decoder module failed: %s", e)
            return False

        decoded = y.detach().reshape(-1).cpu().numpy().astype(np.float32)
        if decoded.size != self.config.samples_per_packet:
            log.error("decoder produced %d samples, expected %d", decoded.size, self.config.samples_per_packet)
            return False
        self._pending = np.concatenate([self._pending, decoded])
        return True

    def decode_samples(self, count: int) -> Optional[np.ndarray]:
        if count <= 0 or self._pending.size < count:
            return None
        out, self._pending = self._pending[:count], self._pending[count:]
        return float_to_pcm(out)


# ===============================
# EXPORT
# ===============================
def export_engine(
    encoder: torch.nn.Module,
    decoder: torch.nn.Module,
    model_dir: str | os.PathLike,
    frame_rate: int,
    frames_per_packet: int,
    num_features: int,
) -> str:
    """
    Script an encoder/decoder pair with TorchScript and write a model directory
    that `TorchScriptEngine.create` can load. Returns the directory path.
    """
    model_dir = os.fspath(model_dir)
    os.makedirs(model_dir, exist_ok=True)

    for module, name in ((encoder, ENCODER_FILE), (decoder, DECODER_FILE)):
        module.eval()
        scripted = torch.jit.script(module.cpu())
        scripted.save(os.path.join(model_dir, name))

    manifest = {
        "frame_rate": frame_rate,
        "frames_per_packet": frames_per_packet,
        "num_features": num_features,
    }
    with open(os.path.join(model_dir, MANIFEST_FILE), "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)

    log.info("engine exported", extra={"model_dir": model_dir, **manifest})
    return model_dir
