"""
packet_codec/container_io.py
Reading and writing the two on-disk containers:
- 16-bit PCM WAV files (soundfile)
- feature matrices stored as named arrays in an .npz archive (NumPy)

Every failure of the underlying library surfaces as ContainerIOError.
"""

from __future__ import annotations
import os
import zipfile
from typing import Sequence, Tuple

import numpy as np
import soundfile as sf
import torch
import torchaudio

from .config import FEATURES_KEY
from .errors import ContainerIOError
from .pcm_utils import pcm_to_float, float_to_pcm, deinterleave, interleave
from .types import AudioData


# ===============================
# AUDIO
# ===============================
def read_wav(path: str | os.PathLike) -> AudioData:
    """Read a whole WAV file into memory as interleaved int16 samples."""
    try:
        data, sr = sf.read(os.fspath(path), dtype="int16", always_2d=True)  # (frames, channels)
    except (RuntimeError, OSError) as e:
        raise ContainerIOError(f"Could not read WAV file {path}: {e}") from e
    return AudioData(samples=data.reshape(-1), num_channels=int(data.shape[1]), sample_rate_hz=int(sr))


def write_wav(path: str | os.PathLike, num_channels: int, sample_rate_hz: int, samples: np.ndarray) -> None:
    """Write interleaved int16 samples as a 16-bit PCM WAV file."""
    try:
        frames = np.asarray(samples, dtype=np.int16).reshape(-1, num_channels)
        sf.write(os.fspath(path), frames, sample_rate_hz, subtype="PCM_16")
    except (RuntimeError, OSError, ValueError) as e:
        raise ContainerIOError(f"Could not write WAV file {path}: {e}") from e


def conform_audio(audio: AudioData, num_channels: int, sample_rate_hz: int) -> np.ndarray:
    """
    Return `audio` as interleaved int16 with the requested channel count and
    sample rate. Channels are downmixed by averaging; resampling uses
    torchaudio. Audio that already matches is returned untouched.
    """
    if audio.num_channels == num_channels and audio.sample_rate_hz == sample_rate_hz:
        return audio.samples

    wav = pcm_to_float(deinterleave(audio.samples, audio.num_channels))  # (C, N)
    if audio.num_channels != num_channels:
        if num_channels == 1:
            wav = wav.mean(axis=0, keepdims=True)
        elif audio.num_channels == 1:
            wav = np.repeat(wav, num_channels, axis=0)
        else:
            raise ValueError(f"Cannot map {audio.num_channels} channels onto {num_channels}")

    if audio.sample_rate_hz != sample_rate_hz:
        wav = torchaudio.functional.resample(
            torch.from_numpy(np.ascontiguousarray(wav)), audio.sample_rate_hz, sample_rate_hz
        ).numpy()

    return interleave(float_to_pcm(wav))


# ===============================
# FEATURE MATRIX
# ===============================
def save_features(
    path: str | os.PathLike,
    flat: np.ndarray,
    shape: Sequence[int],
    key: str = FEATURES_KEY,
    mode: str = "w",
) -> None:
    """
    Store `flat` reshaped to `shape` under `key` in an .npz archive.
    mode "w" replaces the archive; mode "a" keeps the other arrays already in it.
    """
    if mode not in ("w", "a"):
        raise ValueError(f"mode must be 'w' or 'a', got {mode!r}")
    path = os.fspath(path)
    try:
        arrays = {}
        if mode == "a" and os.path.exists(path):
            with np.load(path, allow_pickle=False) as existing:
                arrays = {name: existing[name] for name in existing.files}
        arrays[key] = np.asarray(flat, dtype=np.float32).reshape(tuple(shape))
        # Writing through a handle keeps numpy from appending ".npz" to the path.
        with open(path, "wb") as f:
            np.savez(f, **arrays)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise ContainerIOError(f"Could not save features to {path}: {e}") from e


def load_features(path: str | os.PathLike, key: str = FEATURES_KEY) -> Tuple[np.ndarray, Tuple[int, ...]]:
    """Load the array stored under `key`; returns (flat float32 data, stored shape)."""
    path = os.fspath(path)
    try:
        loaded = np.load(path, allow_pickle=False)
        if not isinstance(loaded, np.lib.npyio.NpzFile):
            raise ValueError("not an .npz archive")
        with loaded:
            arr = loaded[key]
    except KeyError as e:
        raise ContainerIOError(f"No array named {key!r} in {path}") from e
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise ContainerIOError(f"Could not load features from {path}: {e}") from e
    return arr.astype(np.float32).reshape(-1), tuple(int(s) for s in arr.shape)
