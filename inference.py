from __future__ import annotations
import argparse, json, logging, sys

import cv2

from fibergrade.catalog import FIBER_TYPES, GradeGallery, analyze
from fibergrade.config import load_config, loop_config, model_dir
from fibergrade.errors import FiberGradeError
from fibergrade.models.handle import ModelLoader
from fibergrade.realtime.capture_loop import CaptureLoop, CaptureResult, classify_still
from fibergrade.storage import ImageCache, InMemoryStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
log = logging.getLogger("inference")

RETRY_MESSAGE = "Something went wrong. Please try again."


def _print_result(analysis, as_json: bool, ranking=None) -> None:
    if as_json:
        payload = analysis.to_dict()
        if ranking is not None:
            payload["ranking"] = [{"grade": g, "probability": p} for g, p in ranking]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    print(f"Grade:       {analysis.grade} ({analysis.confidence * 100:.1f}%)")
    print(f"Price:       {analysis.price}")
    print(f"Description: {analysis.description}")
    print("Uses:        " + ", ".join(analysis.uses))


def list_grades(cfg, fibers, as_json: bool) -> None:
    """Catalog entries per fiber, with any locally cached reference image."""
    gallery = GradeGallery(InMemoryStore(), ImageCache(cfg.get("cache_dir", "outputs/image_cache")))
    gallery.load_cached()
    out = {}
    for fiber in fibers:
        out[fiber] = [
            {"grade": item.grade, "price": item.price, "cached_image": item.image_url.startswith("data:")}
            for item in gallery.grades(fiber)
        ]
    if as_json:
        print(json.dumps(out, indent=2, ensure_ascii=False))
        return
    for fiber, items in out.items():
        print(f"[{fiber}]")
        for item in items:
            print(f"  {item['grade']:<8} {item['price']}")


def main() -> int:
    ap = argparse.ArgumentParser(description="Grade abaca / pina fiber photos")
    ap.add_argument("--config", type=str, default=None)
    ap.add_argument("--camera", type=int, default=None)
    ap.add_argument("--image", type=str, default=None, help="Classify a single still image instead of the camera feed")
    ap.add_argument("--fiber", type=str, default=None, choices=["abaca", "pina"])
    ap.add_argument("--json", action="store_true", help="Print results as JSON")
    ap.add_argument("--no-window", action="store_true", help="Run the camera loop without a preview window")
    ap.add_argument("--list-grades", action="store_true", help="Print the grade catalog and exit")
    args = ap.parse_args()

    try:
        cfg = load_config(args.config)
        loop_cfg = loop_config(cfg)
    except FiberGradeError as e:
        log.error("%s", e)
        return 2
    if args.fiber:
        loop_cfg.fiber_type = args.fiber

    if args.list_grades:
        list_grades(cfg, [args.fiber] if args.fiber else list(FIBER_TYPES), args.json)
        return 0

    loader = ModelLoader(model_dir(cfg))

    if args.image:
        image = cv2.imread(args.image, cv2.IMREAD_COLOR)
        if image is None:
            log.error("Could not read image %s", args.image)
            return 2
        try:
            with loader.load() as handle:
                ranking = classify_still(handle, image)
        except FiberGradeError as e:
            log.error("%s", e)
            print(RETRY_MESSAGE, file=sys.stderr)
            return 1
        _print_result(analyze(ranking[0], loop_cfg.fiber_type), args.json, ranking)
        return 0

    try:
        loop = CaptureLoop(loader, loop_cfg)
    except FiberGradeError as e:
        log.error("%s", e)
        print(RETRY_MESSAGE, file=sys.stderr)
        return 1

    def on_capture(result: CaptureResult) -> None:
        _print_result(result.analysis, args.json, result.ranking)

    camera = args.camera if args.camera is not None else loop_cfg.camera_index
    loop.run(camera_index=camera, show=not args.no_window, on_capture=on_capture)
    return 0


if __name__ == "__main__":
    sys.exit(main())
