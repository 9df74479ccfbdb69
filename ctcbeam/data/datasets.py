from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from torch.utils.data import Dataset

from ctcbeam.utils.io import load_probs


@dataclass(frozen=True)
class ProbsCsvDatasetConfig:
    csv_path: str
    base_dir: str | None = None  # optional prefix to join with relative paths
    lowercase: bool = False
    npz_key: str = "probs"


class ProbsCsvDataset(Dataset):
    """
    Expects CSV with header containing at least: path,text
    where path points to a saved [T,V] probability (or log-probability) matrix.
    """

    def __init__(self, cfg: ProbsCsvDatasetConfig):
        self.cfg = cfg
        self.samples: list[tuple[str, str]] = []
        self._load_csv()

    def _load_csv(self) -> None:
        p = Path(self.cfg.csv_path)
        if not p.exists():
            raise FileNotFoundError(p)

        with p.open("r", newline="") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames or "path" not in reader.fieldnames or "text" not in reader.fieldnames:
                raise ValueError(f"CSV must have columns path,text. Found: {reader.fieldnames}")

            base = Path(self.cfg.base_dir) if self.cfg.base_dir is not None else p.parent
            for row in reader:
                text = row["text"].strip()
                if self.cfg.lowercase:
                    text = text.lower()
                probs_path = Path(row["path"])
                if not probs_path.is_absolute():
                    probs_path = base / probs_path
                self.samples.append((str(probs_path), text))

        if len(self.samples) == 0:
            raise ValueError(f"No samples listed in {p}")

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, idx: int) -> dict[str, Any]:
        path, text = self.samples[idx]
        return {
            "probs": load_probs(path, key=self.cfg.npz_key),
            "text": text,
            "path": path,
        }
