# envgen/io/audio.py
"""
Audio I/O utilities using soundfile."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import soundfile as sf

ArrayLike = np.ndarray
PathLike = Union[str, Path]

__all__ = [
    "read_audio",
    "read_value_curve",
    "write_audio",
    "write_envelope_csv",
    "to_mono",
]


def _pathify(path: PathLike) -> str:
    return str(Path(path))


def read_audio(
    path: PathLike,
    *,
    dtype: str = "float32",
    always_2d: bool = False,
) -> Tuple[np.ndarray, int]:
    """
    Read an audio file (WAV/FLAC/anything libsndfile supports) via soundfile.

    Parameters
    ----------
    path : str or Path
        Input file.
    dtype : str, default="float32"
        Data type passed to soundfile. Typical options: "float32", "float64".
    always_2d : bool, default=False
        If True, always return shape (N, C). If False and C == 1, returns (N,).

    Returns
    -------
    data : ndarray
        Audio samples, shape (N,) or (N, C).
    sr : int
        Sample rate in Hz.
    """
    data, sr = sf.read(
        _pathify(path),
        dtype=dtype,
        always_2d=True,
    )

    if not always_2d and data.shape[1] == 1:
        data = data[:, 0]

    return np.asarray(data), int(sr)


def to_mono(x: ArrayLike) -> np.ndarray:
    """
    Convert multi-channel audio to mono by averaging channels.

    Parameters
    ----------
    x : ndarray, shape (N,) or (N, C)

    Returns
    -------
    mono : ndarray, shape (N,)
    """
    arr = np.asarray(x)
    if arr.ndim == 1:
        return arr
    if arr.ndim != 2:
        raise ValueError(f"Expected 1D or 2D array, got {arr.shape}")

    if arr.shape[1] == 1:
        return arr[:, 0]

    return arr.mean(axis=1)


def read_value_curve(path: PathLike) -> Tuple[Tuple[float, ...], int]:
    """
    Load an explicit envelope shape from an audio file.

    Multi-channel files are averaged to mono. The returned sample rate is
    what converts the curve length into a duration.

    Returns
    -------
    curve : tuple of float
    sr : int
    """
    data, sr = read_audio(path, dtype="float64", always_2d=False)
    mono = to_mono(data)
    if mono.size == 0:
        raise ValueError(f"Value curve file is empty: {path}")
    return tuple(float(v) for v in mono), sr


def write_audio(
    path: PathLike,
    data: ArrayLike,
    sr: int,
    *,
    subtype: str = "FLOAT",
    clip: Optional[bool] = None,
    dtype: Optional[str] = None,
) -> None:
    """
    Write an audio file (WAV/FLAC/...) via soundfile.

    Parameters
    ----------
    path : str or Path
        Output file path; format is inferred from extension.
    data : ndarray, shape (N,) or (N, C)
        Samples. If 1D, treated as mono.
    sr : int
        Sample rate in Hz.
    subtype : str, default="FLOAT"
        libsndfile subtype, e.g. "PCM_16", "PCM_24", "FLOAT".
        Envelopes may exceed [-1, 1]; "FLOAT" keeps them intact.
    clip : bool or None, default=None
        Clipping behavior for floating-point data:
        - None: clip only for non-FLOAT subtypes (PCM), no clip for "FLOAT".
        - True: always clip to [-1, 1] for float data.
        - False: never clip.
    dtype : str or None
        Optional dtype cast before writing, e.g. "float32".
    """
    arr = np.asarray(data)

    # Ensure (N, C)
    if arr.ndim == 1:
        arr = arr[:, None]
    elif arr.ndim != 2:
        raise ValueError(f"Expected 1D or 2D array, got {arr.shape}")

    if dtype is not None:
        arr = arr.astype(dtype, copy=False)

    if np.issubdtype(arr.dtype, np.floating):
        if clip is None:
            do_clip = (subtype.upper() not in ("FLOAT", "DOUBLE"))
        else:
            do_clip = bool(clip)

        if do_clip:
            arr = np.clip(arr, -1.0, 1.0)

    sf.write(
        _pathify(path),
        arr,
        int(sr),
        subtype=subtype,
    )


def write_envelope_csv(path: PathLike, values: ArrayLike, sr: float) -> None:
    """Write (time, value) rows, one per sample."""
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    times = np.arange(arr.shape[0], dtype=np.float64) / float(sr)
    with Path(path).open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["time", "value"])
        for t, v in zip(times, arr):
            writer.writerow([repr(float(t)), repr(float(v))])
