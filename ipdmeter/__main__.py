"""IPD Meter entry point.

Usage:
    python -m ipdmeter                         # Live measurement
    python -m ipdmeter --resolution 1920x1080  # Pick capture resolution
    python -m ipdmeter --fixed-distance        # Assume subject at 30 cm
    python -m ipdmeter --reset-calibration     # Forget saved constants
"""

import argparse
import logging
from pathlib import Path


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="ipdmeter",
        description="IPD Meter: monocular interpupillary distance estimation",
    )
    parser.add_argument(
        "--camera", type=int, default=None, help="Camera device index"
    )
    parser.add_argument(
        "--resolution", default=None, help="Capture resolution, e.g. 1280x720"
    )
    parser.add_argument(
        "--fixed-distance", action="store_true",
        help="Use the fixed reference distance instead of estimating it",
    )
    parser.add_argument(
        "--calibration-file", type=Path, default=None,
        help="Path of the calibration JSON file",
    )
    parser.add_argument(
        "--reset-calibration", action="store_true",
        help="Reset saved calibration to defaults and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logger = logging.getLogger("ipdmeter")

    from ipdmeter import config
    from ipdmeter.shared.persistence import CalibrationStore

    store = CalibrationStore(args.calibration_file)

    if args.reset_calibration:
        from ipdmeter.brain.session import MeasurementSession

        MeasurementSession(store=store).reset()
        logger.info("Calibration at %s reset.", store.path)
        return

    width, height = config.CAMERA_WIDTH, config.CAMERA_HEIGHT
    if args.resolution:
        from ipdmeter.vision.camera import parse_resolution

        try:
            width, height = parse_resolution(args.resolution)
        except ValueError as exc:
            parser.error(str(exc))

    from ipdmeter.vision.process import run_live

    run_live(
        device_index=args.camera if args.camera is not None else config.CAMERA_INDEX,
        width=width,
        height=height,
        use_fixed_distance=args.fixed_distance,
        store=store,
    )


if __name__ == "__main__":
    main()
