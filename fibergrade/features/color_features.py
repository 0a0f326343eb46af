# fibergrade/features/color_features.py
from __future__ import annotations

import numpy as np
from dataclasses import dataclass
from typing import List, Tuple

import cv2

# OpenCV 8-bit HSV ranges
HUE_RANGE = (0, 180)
SV_RANGE = (0, 256)


@dataclass
class ImageFeatureExtractor:
    """
    Extracts color + texture features from a single fiber photograph.
    Input to compute(): BGR uint8 image (H, W, 3), or a grayscale (H, W) image.

    Fiber grades differ mostly in color (cleaning, stripping, sun-drying) and in
    strand fineness, so the vector is HSV histograms plus channel statistics and a
    few gradient/edge measures of texture.
    """
    image_size: int = 224
    hue_bins: int = 18
    sat_bins: int = 8
    val_bins: int = 8

    # Make the extractor callable so code that does `extractor(img)` still works
    def __call__(self, image: np.ndarray) -> Tuple[np.ndarray, List[str]]:
        return self.compute(image)

    def prepare(self, image: np.ndarray) -> np.ndarray:
        if image is None:
            raise ValueError("image is None")
        img = np.asarray(image)
        if img.size == 0:
            raise ValueError("image is empty")
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        elif img.ndim == 3 and img.shape[2] == 4:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
        elif img.ndim != 3 or img.shape[2] != 3:
            raise ValueError(f"Expected (H,W,3) BGR image, got {img.shape}")
        if img.dtype != np.uint8:
            img = np.clip(img, 0, 255).astype(np.uint8)
        return cv2.resize(img, (self.image_size, self.image_size), interpolation=cv2.INTER_AREA)

    def compute(self, image: np.ndarray) -> Tuple[np.ndarray, List[str]]:
        """
        Args:
            image: BGR image of any size
        Returns:
            features: (F,) float32
            names: list[str] of feature names in the same order
        """
        bgr = self.prepare(image)
        hsv = cv2.cvtColor(bgr, cv2.COLOR_BGR2HSV)
        gray = cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)

        feats: List[float] = []
        names: List[str] = []

        # ---------- Color histograms (L1-normalized) ----------
        for ch, (bins, rng, tag) in enumerate((
            (self.hue_bins, HUE_RANGE, "h"),
            (self.sat_bins, SV_RANGE, "s"),
            (self.val_bins, SV_RANGE, "v"),
        )):
            hist = cv2.calcHist([hsv], [ch], None, [bins], list(rng)).ravel()
            hist = hist / (hist.sum() + 1e-6)
            for i, v in enumerate(hist):
                feats.append(float(v)); names.append(f"{tag}_hist{i}")

        # ---------- Channel statistics ----------
        for space, img, tags in (("bgr", bgr, "bgr"), ("hsv", hsv, "hsv")):
            pix = img.reshape(-1, 3).astype(np.float32)
            means = pix.mean(axis=0)
            stds = pix.std(axis=0)
            for i, tag in enumerate(tags):
                feats.append(float(means[i])); names.append(f"{space}_{tag}_mean")
                feats.append(float(stds[i]));  names.append(f"{space}_{tag}_std")

        # ---------- Texture ----------
        g = gray.astype(np.float32)
        lap_var = float(cv2.Laplacian(g, cv2.CV_32F).var())
        gx = cv2.Sobel(g, cv2.CV_32F, 1, 0, ksize=3)
        gy = cv2.Sobel(g, cv2.CV_32F, 0, 1, ksize=3)
        mag = np.sqrt(gx ** 2 + gy ** 2)
        # strand orientation: fibers are long and parallel, so one gradient axis dominates
        orient_ratio = float(np.abs(gx).mean() / (np.abs(gy).mean() + 1e-6))
        edges = cv2.Canny(gray, 50, 150)
        edge_density = float(np.mean(edges > 0))

        feats += [lap_var, float(mag.mean()), float(mag.std()), orient_ratio, edge_density]
        names += ["laplacian_var", "grad_mag_mean", "grad_mag_std", "grad_orient_ratio", "edge_density"]

        return np.asarray(feats, dtype=np.float32), names
