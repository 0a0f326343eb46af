# fibergrade/dataio/csv_utils.py
from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

IMAGE_EXTS: Sequence[str] = (".jpg", ".jpeg", ".png")


def detect_delimiter(path: Path | str) -> str:
    """
    Delimiter detection with a preference for ',' if sniffing is inconclusive.
    """
    p = Path(path)
    text = p.read_text(encoding="utf-8-sig", errors="ignore")
    sample = text[: 64 * 1024]

    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=";,|\t")
        delim = dialect.delimiter or ","
    except csv.Error:
        delim = ","

    if delim in {",", ";"}:
        comma = sample.count(",")
        semi = sample.count(";")
        delim = ";" if semi > comma else ","

    logger.info("Detected delimiter '%s' for %s", delim, p)
    return delim


# ----- filename heuristics -----

_IMG_PAT = re.compile(r"\.(jpe?g|png)$", re.IGNORECASE)


def _looks_like_filename(value: str) -> bool:
    if not isinstance(value, str):
        return False
    v = value.strip()
    if not v:
        return False
    if _IMG_PAT.search(v):
        return True
    return "\\" in v or "/" in v


def guess_filename_column(df: pd.DataFrame) -> str:
    """
    Choose the column whose values look most like image filenames / paths.
    """
    candidate_cols: list[tuple[float, str]] = []
    for col in df.columns:
        sample_vals = [str(x) for x in df[col].dropna().head(200).tolist()]
        if not sample_vals:
            continue
        hits = sum(_looks_like_filename(x) for x in sample_vals)
        score = hits / max(1, len(sample_vals))
        candidate_cols.append((score, str(col)))

    candidate_cols.sort(key=lambda t: (-t[0], df.columns.get_loc(t[1])))
    chosen = candidate_cols[0][1] if candidate_cols and candidate_cols[0][0] > 0 else str(df.columns[0])
    logger.info("Detected filename column: %s", chosen)
    return chosen


# ----- name cleaning & resolution -----

def strip_numeric_prefix(name: str) -> str:
    """Remove a single leading '123_' prefix exactly once."""
    return re.sub(r"^\d+_", "", name, count=1)


def label_key(s: str) -> str:
    """Normalize to compare names ignoring spaces/underscores/hyphens and case."""
    return re.sub(r"[\s_\-]+", "", str(s)).lower()


def resolve_existing_image(stem: Path) -> Optional[Path]:
    """
    Resolve an image given a full filename or a bare stem with no extension.
    Extensions are probed in IMAGE_EXTS order, upper-case variants after lower.
    """
    stem = Path(stem)

    if stem.is_file() and stem.suffix.lower() in IMAGE_EXTS:
        return stem

    if stem.suffix.lower() not in IMAGE_EXTS:
        for ext in [*IMAGE_EXTS, *(e.upper() for e in IMAGE_EXTS)]:
            p = stem.with_name(stem.name + ext)
            if p.is_file():
                return p

    return None


def list_images(folder: Path) -> list[Path]:
    folder = Path(folder)
    if not folder.is_dir():
        return []
    return sorted(p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTS)
