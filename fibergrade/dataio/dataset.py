# fibergrade/dataio/dataset.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np
import pandas as pd

from .csv_utils import (
    detect_delimiter,
    guess_filename_column,
    label_key,
    list_images,
    resolve_existing_image,
    strip_numeric_prefix,
)

logger = logging.getLogger(__name__)

SPLITS = ("train", "val")


@dataclass
class Sample:
    path: Path
    image: Optional[np.ndarray]
    label_text: str
    label_index: int


class FiberDataset:
    """
    Loads labeled fiber photographs for the train/val splits.

    Two layouts are understood, checked per split:
      dataset_root/
        train.csv                # rows: <filename>,<grade> (any column order, optional header)
        train/<filename>
      or
      dataset_root/
        train/<GRADE>/*.jpg      # one folder per grade

    `labels` fixes the grade order (and so the label indices); when omitted it is
    discovered from the first split loaded, in sorted order.
    """

    def __init__(self, dataset_root: Path | str, labels: Optional[Sequence[str]] = None,
                 load_images: bool = True) -> None:
        self.dataset_root = Path(dataset_root)
        self.labels: Optional[List[str]] = list(labels) if labels else None
        self.load_images = load_images
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # ---------- public API ----------

    def load_split(self, split: str) -> List[Sample]:
        if split not in SPLITS:
            raise ValueError(f"Unknown split {split!r}, expected one of {SPLITS}")
        csv_path = self.dataset_root / f"{split}.csv"
        if csv_path.exists():
            rows = self._rows_from_csv(csv_path, self.dataset_root / split)
        else:
            rows = self._rows_from_folders(self.dataset_root / split)

        if self.labels is None:
            self.labels = sorted({text for _, text in rows})
            self.logger.info("Discovered %d grades: %s", len(self.labels), self.labels)
        index = {label_key(name): i for i, name in enumerate(self.labels)}

        parsed = kept = skipped = 0
        samples: List[Sample] = []
        for img_path, raw_label in rows:
            parsed += 1
            idx = index.get(label_key(raw_label))
            if idx is None:
                self.logger.warning("Unknown grade '%s' for %s -> skip", raw_label, img_path)
                skipped += 1
                continue

            image = None
            if self.load_images:
                image = cv2.imread(str(img_path), cv2.IMREAD_COLOR)
                if image is None:
                    self.logger.warning("cv2.imread failed for %s -> skip", img_path)
                    skipped += 1
                    continue

            samples.append(Sample(path=img_path, image=image, label_text=self.labels[idx], label_index=idx))
            kept += 1

        self.logger.info("Split %s: parsed=%d kept=%d skipped=%d", split, parsed, kept, skipped)
        return samples

    def load_all(self) -> Tuple[List[Sample], List[Sample]]:
        return self.load_split("train"), self.load_split("val")

    # ---------- internals ----------

    def _rows_from_folders(self, split_dir: Path) -> List[Tuple[Path, str]]:
        if not split_dir.is_dir():
            raise FileNotFoundError(f"No CSV and no grade folders at {split_dir}")
        rows: List[Tuple[Path, str]] = []
        for grade_dir in sorted(d for d in split_dir.iterdir() if d.is_dir()):
            for img in list_images(grade_dir):
                rows.append((img, grade_dir.name))
        self.logger.info("Found %d images in grade folders under %s", len(rows), split_dir)
        return rows

    def _rows_from_csv(self, csv_path: Path, base_dir: Path) -> List[Tuple[Path, str]]:
        df = self._read_csv(csv_path)
        filename_col = guess_filename_column(df)
        label_col = self._detect_label_column(df, exclude={filename_col})
        if label_col is None:
            raise ValueError(f"No grade column found in {csv_path}")

        rows: List[Tuple[Path, str]] = []
        for _idx, row in df.iterrows():
            raw_name = str(row.get(filename_col, "")).strip()
            raw_label = str(row.get(label_col, "")).strip()
            if not raw_name or raw_name.lower() == "nan" or not raw_label or raw_label.lower() == "nan":
                continue
            clean = strip_numeric_prefix(Path(raw_name).name)
            img_path = resolve_existing_image(base_dir / Path(raw_name).name) or resolve_existing_image(base_dir / clean)
            if img_path is None:
                self.logger.warning("Image not found for %s -> searched under %s", raw_name, base_dir)
                continue
            rows.append((img_path, raw_label))
        return rows

    def _read_csv(self, csv_path: Path) -> pd.DataFrame:
        """
        Always read with header=None; a header row simply fails to resolve to an image.
        """
        delim = detect_delimiter(csv_path)
        df = pd.read_csv(csv_path, sep=delim, header=None, engine="python", dtype=str)
        df.columns = [f"c{i}" for i in range(len(df.columns))]
        self.logger.info("Loaded %d rows from %s with delimiter '%s'", len(df), csv_path, delim)
        return df

    def _detect_label_column(self, df: pd.DataFrame, exclude: set[str]) -> Optional[str]:
        candidates = [c for c in df.columns if c not in exclude]
        if not candidates:
            return None
        if self.labels is None:
            return candidates[0]
        known = {label_key(name) for name in self.labels}
        hits: Dict[str, int] = {
            col: int(df[col].fillna("").map(label_key).isin(known).sum()) for col in candidates
        }
        return max(candidates, key=lambda c: hits[c])
