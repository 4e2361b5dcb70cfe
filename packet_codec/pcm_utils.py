"""
Conversions between 16-bit PCM buffers and float waveforms.
"""

from __future__ import annotations
import numpy as np
import torch

INT16_SCALE = 32768.0


def pcm_to_float(samples: np.ndarray) -> np.ndarray:
    """int16 PCM → float32 in [-1, 1)."""
    return np.asarray(samples, dtype=np.int16).astype(np.float32) / INT16_SCALE


def float_to_pcm(wav) -> np.ndarray:
    """float waveform (array or tensor) → clipped int16 PCM."""
    if isinstance(wav, torch.Tensor):
        wav = wav.detach().cpu().numpy()
    scaled = np.round(np.asarray(wav, dtype=np.float64) * INT16_SCALE)
    return np.clip(scaled, -INT16_SCALE, INT16_SCALE - 1).astype(np.int16)


def deinterleave(samples: np.ndarray, num_channels: int) -> np.ndarray:
    """Interleaved (N*C,) → (C, N)."""
    return np.asarray(samples).reshape(-1, num_channels).T


def interleave(channels: np.ndarray) -> np.ndarray:
    """(C, N) → interleaved (N*C,)."""
    return np.ascontiguousarray(np.asarray(channels).T).reshape(-1)


def rms(samples: np.ndarray) -> float:
    """Root-mean-square of a PCM block on the [-1, 1) scale."""
    if len(samples) == 0:
        return 0.0
    x = pcm_to_float(samples).astype(np.float64)
    return float(np.sqrt(np.mean(x * x)))
