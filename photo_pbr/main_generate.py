"""Command line interface for the photo-to-PBR texture generator."""
from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from PIL import Image

from .core import config
from .core.errors import PBRPipelineError
from .core.utils_io import SafeFileManager
from .modules.surface_maps.edge_kernels import EdgeDetection

LOGGER = logging.getLogger("photo_pbr.main_generate")

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp"}


class BoolAction(argparse.Action):
    """Robust boolean flag parser supporting affirmative and negative forms."""

    def __call__(self, parser, namespace, values, option_string=None):  # type: ignore[override]
        if values is None:
            setattr(namespace, self.dest, True)
            return
        normalized = str(values).strip().lower()
        if normalized in {"1", "y", "yes", "t", "true", "on"}:
            setattr(namespace, self.dest, True)
        elif normalized in {"0", "n", "no", "f", "false", "off"}:
            setattr(namespace, self.dest, False)
        else:
            raise argparse.ArgumentTypeError(f"Invalid boolean for {option_string}: {values!r}")


def _configure_logging(log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    file_handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logging.basicConfig(level=logging.INFO, handlers=[file_handler, console_handler])


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value}")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate tileable PBR texture maps from photographs")
    parser.add_argument("--input", type=Path, default=config.PATH_INPUT, help="Input image or directory of images")
    parser.add_argument("--output", type=Path, default=config.PATH_OUTPUT, help="Directory to write generated materials")
    parser.add_argument(
        "--resolution",
        type=_positive_int,
        default=config.DEFAULT_RESOLUTION,
        help="Side length of the square output maps (default: 512)",
    )
    parser.add_argument(
        "--edge-detection",
        choices=[kind.value for kind in EdgeDetection],
        default=config.DEFAULT_EDGE_DETECTION,
        help="Gradient operator used for the normal map",
    )
    parser.add_argument(
        "--tiling",
        nargs="?",
        default=config.ENABLE_TILING,
        action=BoolAction,
        help="Make every map tile seamlessly (default: true)",
    )
    parser.add_argument(
        "--no-tiling",
        dest="tiling",
        action="store_false",
        help="Disable seamless tiling",
    )
    parser.add_argument("--threads", type=_positive_int, default=6, help="Number of worker threads")
    parser.add_argument("--log-file", type=Path, default=None, help="Log file path")
    return parser.parse_args(argv)


def build_runtime_config(args: argparse.Namespace) -> Dict[str, object]:
    overrides: Dict[str, object] = {
        "PATH_INPUT": args.input.resolve(),
        "PATH_OUTPUT": args.output.resolve(),
        "RESOLUTION": args.resolution,
        "EDGE_DETECTION": args.edge_detection,
        "ENABLE_TILING": args.tiling,
        "THREADS": args.threads,
    }
    if args.log_file is not None:
        overrides["LOG_FILE"] = args.log_file.resolve()
    return config.build_config(overrides)


def collect_inputs(path: Path) -> List[Path]:
    """Return the image files at *path* (a single file or a directory)."""

    if path.is_file():
        return [path]
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES)


def material_name(created: datetime) -> str:
    return f"Material_{created.strftime('%Y%m%dT%H%M%S')}"


def write_material(
    result: Dict[str, object],
    output_dir: Path,
    name: str,
    created: datetime,
    source: Optional[Path] = None,
) -> Path:
    """Write every encoded map plus ``material_info.json`` under ``output_dir/name``."""

    manager = SafeFileManager(output_dir / name)
    textures: Dict[str, bytes] = result["textures"]  # type: ignore[assignment]
    for kind, payload in textures.items():
        manager.atomic_write(payload, f"{name}_{kind}.png")

    settings = result["settings"]
    info = {
        "name": name,
        "created": created.isoformat(),
        "generator": config.GENERATOR_NAME,
        "source": str(source) if source is not None else None,
        "settings": settings.as_dict(),  # type: ignore[union-attr]
        "textures": list(textures.keys()),
        "tiling": result.get("tiling_info"),
    }
    manager.atomic_write_json(info, "material_info.json")
    return manager.base_dir


def run(cfg: Dict[str, object], inputs: Iterable[Path]) -> int:
    from .modules.pbr.pipeline import PBRTextureGenerator

    generator = PBRTextureGenerator(cfg)
    output_dir = Path(cfg["PATH_OUTPUT"])  # type: ignore[arg-type]
    failures = 0
    used_names: set[str] = set()
    for path in inputs:
        created = datetime.now()
        name = material_name(created)
        suffix = 1
        while name in used_names:
            suffix += 1
            name = f"{material_name(created)}_{suffix}"
        used_names.add(name)
        try:
            with Image.open(path) as image:
                image.load()
                result = generator.generate(image)
        except (OSError, PBRPipelineError) as exc:
            failures += 1
            LOGGER.error("Failed to process %s: %s", path, exc)
            continue
        destination = write_material(result, output_dir, name, created, source=path)
        LOGGER.info("Material %s written to %s", name, destination)
    return failures


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = build_runtime_config(args)
    _configure_logging(Path(cfg["LOG_FILE"]))  # type: ignore[arg-type]
    LOGGER.info(
        "CLI flags resolved -> resolution=%s, edge_detection=%s, tiling=%s",
        args.resolution,
        args.edge_detection,
        args.tiling,
    )
    inputs = collect_inputs(Path(cfg["PATH_INPUT"]))  # type: ignore[arg-type]
    if not inputs:
        LOGGER.error("No input images found at %s", cfg["PATH_INPUT"])
        return 1
    failures = run(cfg, inputs)
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
