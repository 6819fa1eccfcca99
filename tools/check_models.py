#!/usr/bin/env python3
"""
Check that the exported YOLO model artifacts are in place.

Missing models are not fatal for the pipeline (it falls back to simulated
detection), so this only reports. Exit status is 1 when something is
missing or oversized, for use in CI.

Usage:
    python tools/check_models.py
    python tools/check_models.py --models-dir assets/models
"""

import argparse
import os
import sys

# Add project directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from inference.assets import DEFAULT_MODELS_DIR, check_model_assets  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Check YOLO model assets")
    parser.add_argument("--models-dir", default=DEFAULT_MODELS_DIR,
                        help="Directory holding the exported models")
    args = parser.parse_args()

    print(f"Checking model assets in {args.models_dir}\n")
    report = check_model_assets(args.models_dir)

    ok = True
    for status in report.present:
        line = f"  found   {status.artifact.name} ({status.size_mb:.1f} MB) - {status.artifact.description}"
        if status.oversized:
            line += f"  [exceeds {status.artifact.max_size_mb:.0f} MB]"
            ok = False
        print(line)

    for status in report.missing:
        print(f"  missing {status.artifact.name} - {status.artifact.format}")
        ok = False

    if report.missing:
        print("\nExport the models with ultralytics, e.g.:")
        print("  yolo export model=yolov5s.pt format=tflite")
        print("  yolo export model=yolov5s.pt format=coreml")
        print("The pipeline will run in simulated mode until they are present.")

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
