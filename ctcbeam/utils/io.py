from __future__ import annotations

from pathlib import Path

import numpy as np


def load_probs(path: str | Path, key: str = "probs") -> np.ndarray:
    """
    Read a [T,V] matrix from .npy, or from array `key` of an .npz archive.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    if path.suffix == ".npz":
        with np.load(path) as archive:
            if key not in archive:
                raise KeyError(f"{path} has no array {key!r}, found {list(archive.keys())}")
            return archive[key]
    return np.load(path, allow_pickle=False)
