"""
Vehicle detection pipeline entry point.

Reads frames from a source, throttles them through the frame scheduler and
runs the detection backend on admitted frames, optionally serving the
status API.

Usage:
    python src/main.py --config config/config.yaml --web

Arguments:
    --config: Path to configuration file
    --source: "synthetic", a camera index or a video file path (overrides config)
    --duration: Stop after this many seconds
    --web: Serve the status API (overrides web.enabled)
"""

import os
import sys
import argparse
import logging
import threading
from typing import Dict, Any, Tuple, Optional

import yaml
import uvicorn

from detection.service import DetectionService, default_fallback
from inference import BACKENDS, create_backend
from models.config import Config
from observation import SOURCE_KINDS, create_source_from_config
from ops.logging import setup_logging
from pipeline.engine import create_loop_from_config
from pipeline.scheduler import FrameScheduler
from web.app import create_app
from web.state import DetectionState


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['detection', 'frames', 'backend', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    for section in ('detection', 'frames', 'backend', 'source', 'web'):
        if section in config and not isinstance(config[section] or {}, dict):
            return False, f"{section} must be a mapping"

    backend = config.get('backend') or {}
    name = backend.get('name', 'simulated')
    if name not in BACKENDS:
        return False, f"backend.name must be one of: {', '.join(BACKENDS)}"
    if 'load_delay' in backend:
        delay = backend['load_delay']
        if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
            return False, "backend.load_delay must be a non-negative number"
    if backend.get('seed') is not None and not isinstance(backend['seed'], int):
        return False, "backend.seed must be an integer"

    source = config.get('source') or {}
    if source.get('kind', 'synthetic') not in SOURCE_KINDS:
        return False, f"source.kind must be one of: {', '.join(SOURCE_KINDS)}"
    device_id = source.get('device_id', 0)
    if not isinstance(device_id, (int, str)):
        return False, "source.device_id must be an integer (index) or string (path)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "source.device_id integer must be non-negative"
    for key in ('width', 'height'):
        if key in source and (not isinstance(source[key], int) or source[key] <= 0):
            return False, f"source.{key} must be a positive integer"

    web = config.get('web') or {}
    if 'port' in web and (not isinstance(web['port'], int) or not 0 < web['port'] < 65536):
        return False, "web.port must be a valid TCP port"

    # Detection and frame ranges are checked by the typed configs
    try:
        Config.from_dict(config)
    except (TypeError, ValueError) as e:
        return False, str(e)

    if not isinstance(config['log_path'], str):
        return False, "log_path must be a string"
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply --source and --web on top of the loaded config."""
    if args.source:
        source = config.setdefault('source', {})
        if args.source == 'synthetic':
            source['kind'] = 'synthetic'
        else:
            source['kind'] = 'opencv'
            source['device_id'] = int(args.source) if args.source.isdigit() else args.source
    if args.web:
        config.setdefault('web', {})['enabled'] = True
    return config


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Vehicle Detection Pipeline')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='"synthetic", camera index or video file path')
    parser.add_argument('--duration', type=float, default=None,
                        help='Stop after this many seconds')
    parser.add_argument('--web', action='store_true',
                        help='Serve the status API')
    args = parser.parse_args()

    config = apply_cli_overrides(load_config(args.config), args)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    logging.info("Starting Vehicle Detection Pipeline")

    backend = create_backend(cfg.backend, cfg.detection)
    service = DetectionService(
        backend,
        cfg.detection,
        fallback=default_fallback if cfg.backend.fallback_to_simulation else None,
    )
    if not service.initialize():
        logging.error("Detection service failed to initialize")
        sys.exit(1)

    scheduler = FrameScheduler(service, cfg.frames)
    detection_state = DetectionState()
    scheduler.add_callback(detection_state)

    source = create_source_from_config(cfg.source)
    loop = create_loop_from_config(cfg, source, scheduler, duration=args.duration)

    if cfg.web.enabled:
        def run_web_app():
            uvicorn.run(
                create_app(detection_state, scheduler, service),
                host=cfg.web.host,
                port=cfg.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Status API started on port {cfg.web.port}")

    try:
        loop.run()
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except Exception as e:
        logging.error(f"Error in detection loop: {e}")
        raise
    finally:
        stats = scheduler.get_stats()
        scheduler.dispose()
        service.dispose()
        logging.info(
            f"Vehicle Detection Pipeline stopped: processed={stats.frames_processed}, "
            f"dropped={stats.dropped_frames}, skipped={stats.skipped_frames}, "
            f"rate_limited={stats.rate_limited_frames}"
        )


if __name__ == "__main__":
    main()
