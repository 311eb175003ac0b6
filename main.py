import argparse
import logging
import os
from pathlib import Path

from tqdm import tqdm

from glowface.bridge import FrameBridge, Toggles
from glowface.config import load_and_merge
from glowface.errors import DeviceAcquisitionError, ModelLoadError, ValidationError
from glowface.facemesh import FaceMeshConfig, FaceMeshDetector
from glowface.loader import iter_image_paths, read_image
from glowface.presets import FilterConfigStore, PresetId
from glowface.session import LiveSession, import_startup_config
from glowface.utils import setup_logging
from glowface.writers import BatchWriter, build_record, write_image

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="GlowFace live beauty filter")
    # Live mode (default)
    p.add_argument("--camera", type=int, default=None, help="Camera device index")
    p.add_argument("--no-mirror", action="store_true", help="Show the preview unmirrored")
    p.add_argument("--capture-dir", default=None, help="Where photos and exported configs are saved")
    # Single-image mode
    p.add_argument("--image", help="Apply the filter to a single image (PNG/JPG)")
    p.add_argument("--save", default=None, help="Output path for single-image mode")
    # Batch mode
    p.add_argument("--input-dir", help="Directory of images to filter (batch mode)")
    p.add_argument("--output-dir", help="Directory to write filtered images and summary")
    p.add_argument("--max-files", type=int, default=None, help="Optional max files to process (for testing)")
    # Filter
    p.add_argument("--preset", choices=[pid.value for pid in PresetId], default=None, help="Filter preset")
    p.add_argument("--import-json", default=None, help="Exported preset JSON to apply to the selected preset")
    p.add_argument("--mesh", action="store_true", help="Draw the face-oval wireframe")
    p.add_argument("--hands", action="store_true", help="Draw hand skeletons (live mode)")
    # Config
    p.add_argument("--config", default=None, help="Optional YAML config path")
    p.add_argument("--log-level", default=None, help="Override log level (e.g., INFO, DEBUG)")
    return p.parse_args()


def build_store(cfg: dict) -> FilterConfigStore:
    store = FilterConfigStore(cfg["filter"]["preset"])
    import_file = cfg["filter"].get("import_file")
    if import_file:
        try:
            import_startup_config(store, import_file)
        except (OSError, ValidationError) as e:
            raise SystemExit(f"Could not import preset config {import_file}: {e}")
    return store


def still_bridge(cfg: dict, store: FilterConfigStore) -> FrameBridge:
    return FrameBridge(
        store,
        toggles=Toggles(
            filter_enabled=bool(cfg["filter"].get("enabled", True)),
            mesh_enabled=bool(cfg["overlay"].get("mesh", False)),
            hand_enabled=False,
        ),
    )


def run_single(image_path: str, save: str, cfg: dict, store: FilterConfigStore) -> None:
    image = read_image(image_path)
    if image is None:
        raise SystemExit(f"Failed to read image: {image_path}")

    bridge = still_bridge(cfg, store)
    try:
        with FaceMeshDetector(FaceMeshConfig.from_config(cfg, static_image_mode=True)) as det:
            landmarks = det.detect(image)
    except ModelLoadError as e:
        raise SystemExit(str(e))
    if landmarks is None:
        print("No face detected; writing the image unfiltered")

    out = bridge.on_face_result(image, landmarks)
    out_path = write_image(save, out)
    print("Saved:", out_path)


def run_batch(cfg: dict, store: FilterConfigStore) -> None:
    input_dir = cfg["paths"].get("input_dir")
    output_dir = cfg["paths"].get("output_dir")
    if not input_dir or not output_dir:
        raise SystemExit("Batch mode requires --input-dir and --output-dir (or set in config)")

    paths = list(iter_image_paths(input_dir, max_files=cfg["runtime"].get("max_files")))
    if not paths:
        print("No images found in", input_dir)
        return

    bridge = still_bridge(cfg, store)
    writer = BatchWriter(output_dir, store.selected, store.current())
    try:
        detector = FaceMeshDetector(FaceMeshConfig.from_config(cfg, static_image_mode=True)).open()
    except ModelLoadError as e:
        raise SystemExit(str(e))

    with detector:
        for path in tqdm(paths, desc="Filtering", unit="img"):
            image = read_image(path)
            if image is None:
                logger.warning("Failed to read image: %s", path)
                writer.add(build_record(path, None, face_found=False, readable=False))
                continue
            landmarks = detector.detect(image)
            out = bridge.on_face_result(image, landmarks)
            out_path = write_image(writer.output_path(path, input_dir), out)
            writer.add(build_record(path, out_path, face_found=landmarks is not None))

    summary = writer.finalize()
    print("Summary:", summary["counts"])


def main():
    # Reduce TF/MediaPipe verbosity if desired
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

    args = parse_args()

    # Build CLI overrides for config merging
    cli_overrides = {"camera": {}, "filter": {}, "overlay": {}, "paths": {}, "runtime": {}}
    if args.camera is not None:
        cli_overrides["camera"]["index"] = args.camera
    if args.no_mirror:
        cli_overrides["camera"]["mirror"] = False
    if args.preset:
        cli_overrides["filter"]["preset"] = args.preset
    if args.import_json:
        cli_overrides["filter"]["import_file"] = args.import_json
    if args.mesh:
        cli_overrides["overlay"]["mesh"] = True
    if args.hands:
        cli_overrides["overlay"]["hands"] = True
    if args.capture_dir:
        cli_overrides["paths"]["capture_dir"] = args.capture_dir
    if args.input_dir:
        cli_overrides["paths"]["input_dir"] = args.input_dir
    if args.output_dir:
        cli_overrides["paths"]["output_dir"] = args.output_dir
    if args.max_files is not None:
        cli_overrides["runtime"]["max_files"] = args.max_files
    if args.log_level:
        cli_overrides["runtime"]["log_level"] = args.log_level

    try:
        cfg = load_and_merge(args.config, cli_overrides)
    except ValueError as e:
        raise SystemExit(str(e))

    setup_logging(cfg.get("runtime", {}).get("log_level", "INFO"))
    store = build_store(cfg)

    # Single-image mode
    if args.image and not args.input_dir:
        save = args.save or str(Path(args.image).with_name(f"{Path(args.image).stem}-glowface.jpg"))
        run_single(args.image, save, cfg, store)
        return

    # Batch mode
    if args.input_dir:
        run_batch(cfg, store)
        return

    # Live mode
    session = LiveSession(cfg, store)
    try:
        session.start()
    except DeviceAcquisitionError as e:
        raise SystemExit(f"Camera unavailable: {e}\nAllow camera access and run again.")
    except ModelLoadError as e:
        raise SystemExit(f"Face model unavailable: {e}\nCheck the mediapipe installation and run again.")
    session.run()


if __name__ == "__main__":
    main()
