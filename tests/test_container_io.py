"""Unit tests for WAV and feature-matrix container I/O."""

import numpy as np
import pytest
import soundfile as sf

from packet_codec.container_io import (
    conform_audio,
    load_features,
    read_wav,
    save_features,
    write_wav,
)
from packet_codec.errors import ContainerIOError
from packet_codec.types import AudioData


class TestWav:
    """Test 16-bit PCM WAV reading and writing."""

    def test_round_trip_mono(self, tmp_path) -> None:
        path = tmp_path / "mono.wav"
        samples = np.array([0, 1, -1, 32767, -32768, 1234], dtype=np.int16)
        write_wav(path, 1, 16000, samples)

        audio = read_wav(path)
        assert audio.num_channels == 1
        assert audio.sample_rate_hz == 16000
        np.testing.assert_array_equal(audio.samples, samples)

    def test_written_as_pcm16(self, tmp_path) -> None:
        path = tmp_path / "out.wav"
        write_wav(path, 1, 8000, np.zeros(80, dtype=np.int16))
        info = sf.info(str(path))
        assert info.subtype == "PCM_16"
        assert info.frames == 80

    def test_stereo_is_interleaved(self, tmp_path) -> None:
        path = tmp_path / "stereo.wav"
        frames = np.array([[1, -1], [2, -2], [3, -3]], dtype=np.int16)
        sf.write(str(path), frames, 16000, subtype="PCM_16")

        audio = read_wav(path)
        assert audio.num_channels == 2
        assert audio.num_frames == 3
        np.testing.assert_array_equal(audio.samples, [1, -1, 2, -2, 3, -3])

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ContainerIOError, match="Could not read WAV file"):
            read_wav(tmp_path / "nope.wav")

    def test_not_a_wav(self, tmp_path) -> None:
        path = tmp_path / "bad.wav"
        path.write_bytes(b"definitely not audio")
        with pytest.raises(ContainerIOError):
            read_wav(path)

    def test_write_into_missing_directory(self, tmp_path) -> None:
        with pytest.raises(ContainerIOError, match="Could not write WAV file"):
            write_wav(tmp_path / "missing" / "out.wav", 1, 16000, np.zeros(10, dtype=np.int16))

    def test_write_uneven_channels(self, tmp_path) -> None:
        with pytest.raises(ContainerIOError):
            write_wav(tmp_path / "out.wav", 2, 16000, np.zeros(3, dtype=np.int16))


class TestConformAudio:
    """Test channel and sample-rate conversion."""

    def test_matching_audio_untouched(self) -> None:
        samples = np.arange(10, dtype=np.int16)
        out = conform_audio(AudioData(samples, 1, 16000), 1, 16000)
        assert out is samples

    def test_downmix_to_mono(self) -> None:
        samples = np.array([100, 300, -200, -400], dtype=np.int16)
        out = conform_audio(AudioData(samples, 2, 16000), 1, 16000)
        np.testing.assert_array_equal(out, [200, -300])

    def test_resample_changes_length(self) -> None:
        samples = np.zeros(1600, dtype=np.int16)
        out = conform_audio(AudioData(samples, 1, 16000), 1, 8000)
        assert out.dtype == np.int16
        assert len(out) == 800


class TestFeatures:
    """Test .npz feature matrix storage."""

    def test_round_trip_keeps_shape(self, tmp_path) -> None:
        path = tmp_path / "features.npz"
        flat = np.arange(12, dtype=np.float32)
        save_features(path, flat, (3, 4))

        data, shape = load_features(path)
        assert shape == (3, 4)
        assert data.dtype == np.float32
        np.testing.assert_array_equal(data, flat)

    def test_path_is_not_renamed(self, tmp_path) -> None:
        path = tmp_path / "encoded.feat"
        save_features(path, np.zeros(4, dtype=np.float32), (1, 4))
        assert path.exists()
        assert not (tmp_path / "encoded.feat.npz").exists()

    def test_write_mode_replaces_archive(self, tmp_path) -> None:
        path = tmp_path / "features.npz"
        save_features(path, np.zeros(4), (1, 4), key="other")
        save_features(path, np.ones(4), (1, 4), mode="w")
        with np.load(path) as npz:
            assert npz.files == ["features"]

    def test_append_mode_keeps_other_arrays(self, tmp_path) -> None:
        path = tmp_path / "features.npz"
        save_features(path, np.zeros(4), (1, 4), key="other")
        save_features(path, np.ones(8), (2, 4), mode="a")
        with np.load(path) as npz:
            assert sorted(npz.files) == ["features", "other"]
            assert npz["features"].shape == (2, 4)

    def test_invalid_mode(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="mode"):
            save_features(tmp_path / "f.npz", np.zeros(4), (1, 4), mode="x")

    def test_shape_mismatch(self, tmp_path) -> None:
        with pytest.raises(ContainerIOError):
            save_features(tmp_path / "f.npz", np.zeros(5), (1, 4))

    def test_missing_key(self, tmp_path) -> None:
        path = tmp_path / "features.npz"
        save_features(path, np.zeros(4), (1, 4), key="other")
        with pytest.raises(ContainerIOError, match="No array named 'features'"):
            load_features(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ContainerIOError, match="Could not load features"):
            load_features(tmp_path / "missing.npz")

    def test_plain_npy_rejected(self, tmp_path) -> None:
        path = tmp_path / "features.npy"
        np.save(path, np.zeros(4))
        with pytest.raises(ContainerIOError, match="not an .npz archive"):
            load_features(path)
