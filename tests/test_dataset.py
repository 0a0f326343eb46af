from pathlib import Path

import cv2
import numpy as np
import pytest

from fibergrade.dataio import FiberDataset


def write_image(path: Path, value: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    assert cv2.imwrite(str(path), np.full((16, 16, 3), value, dtype=np.uint8))


def test_folder_layout_discovers_grades(tmp_path: Path):
    write_image(tmp_path / "train" / "S2" / "a.png", 220)
    write_image(tmp_path / "train" / "S2" / "b.png", 210)
    write_image(tmp_path / "train" / "EF" / "c.png", 60)
    ds = FiberDataset(tmp_path)
    samples = ds.load_split("train")
    assert ds.labels == ["EF", "S2"]
    assert sorted((s.path.name, s.label_index) for s in samples) == [("a.png", 1), ("b.png", 1), ("c.png", 0)]
    assert samples[0].image.shape == (16, 16, 3)


def test_csv_layout_with_header_and_unknown_grade(tmp_path: Path):
    write_image(tmp_path / "val" / "x1.png", 200)
    write_image(tmp_path / "val" / "x2.png", 100)
    write_image(tmp_path / "val" / "x3.png", 50)
    (tmp_path / "val.csv").write_text(
        "grade,filename\nS2,x1.png\nm-1,7_x2\nZZ,x3.png\nH,missing.png\n", encoding="utf-8"
    )
    ds = FiberDataset(tmp_path, labels=["S2", "M1", "H"])
    samples = ds.load_split("val")
    assert [(s.path.name, s.label_text) for s in samples] == [("x1.png", "S2"), ("x2.png", "M1")]


def test_load_images_false_skips_decoding(tmp_path: Path):
    write_image(tmp_path / "train" / "H" / "a.png", 128)
    samples = FiberDataset(tmp_path, labels=["H"], load_images=False).load_split("train")
    assert samples[0].image is None


def test_missing_split_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        FiberDataset(tmp_path).load_split("train")
    with pytest.raises(ValueError):
        FiberDataset(tmp_path).load_split("test")
