"""
Utility functions for the PCA compression pipeline.

This module provides shared utilities:
- Configuration loading, validation and saving
- Logging setup
- Console summaries
"""

import os
import yaml
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


BACKENDS = ("threads", "mpi")


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class PCAConfig:
    """Configuration container for a compression run."""

    # Run identification
    run_name: str = ""

    # Paths
    input_path: str = ""
    output_path: str = "compressed_image.jpg"
    plot_dir: Optional[str] = None

    # PCA
    n_components: int = 0
    style: int = 0

    # Execution
    n_workers: int = 1
    backend: str = "threads"
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_config(config_path: str) -> PCAConfig:
    """Load configuration from YAML file."""
    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    cfg = PCAConfig()
    cfg.run_name = raw.get("run_name", "")

    # Paths
    paths = raw.get("paths", {})
    cfg.input_path = paths.get("input", "")
    cfg.output_path = paths.get("output", "compressed_image.jpg")
    cfg.plot_dir = paths.get("plot_dir")

    # PCA
    pca = raw.get("pca", {})
    cfg.n_components = pca.get("n_components", 0)
    cfg.style = pca.get("style", 0)

    # Execution
    execution = raw.get("execution", {})
    cfg.n_workers = execution.get("n_workers", 1)
    cfg.backend = execution.get("backend", "threads")
    cfg.log_level = execution.get("log_level", "INFO")
    cfg.log_file = execution.get("log_file")

    return cfg


def save_config(cfg: PCAConfig, output_path: str) -> str:
    """Save configuration to ``config.yaml`` inside ``output_path``."""
    config_dict = {
        "run_name": cfg.run_name,
        "paths": {
            "input": cfg.input_path,
            "output": cfg.output_path,
            "plot_dir": cfg.plot_dir,
        },
        "pca": {"n_components": cfg.n_components, "style": cfg.style},
        "execution": {
            "n_workers": cfg.n_workers,
            "backend": cfg.backend,
            "log_level": cfg.log_level,
            "log_file": cfg.log_file,
        },
    }

    os.makedirs(output_path, exist_ok=True)
    filepath = os.path.join(output_path, "config.yaml")

    with open(filepath, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    return filepath


def validate_config(cfg: PCAConfig):
    """Check fields that do not depend on the input data."""
    if not cfg.input_path:
        raise ConfigurationError("No input image given")
    if not os.path.isfile(cfg.input_path):
        raise ConfigurationError(f"Input image not found: {cfg.input_path}")
    if not cfg.output_path:
        raise ConfigurationError("No output path given")
    if not isinstance(cfg.n_workers, int) or cfg.n_workers < 1:
        raise ConfigurationError(f"n_workers must be a positive integer, got {cfg.n_workers!r}")
    if not isinstance(cfg.n_components, int) or cfg.n_components < 1:
        raise ConfigurationError(f"n_components must be a positive integer, got {cfg.n_components!r}")
    if cfg.style not in (0, 1):
        raise ConfigurationError(f"style must be 0 (clamp) or 1 (rescale), got {cfg.style!r}")
    if cfg.backend not in BACKENDS:
        raise ConfigurationError(f"Unknown backend {cfg.backend!r}; expected one of {BACKENDS}")
    if not hasattr(logging, str(cfg.log_level).upper()):
        raise ConfigurationError(f"Unknown log level {cfg.log_level!r}")


# =============================================================================
# LOGGING
# =============================================================================

def setup_logging(name: str, log_file: Optional[str] = None, log_level: str = "INFO",
                  rank: int = 0) -> logging.Logger:
    """Set up console (and optionally file) logging for a run."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers = []

    formatter = logging.Formatter(
        '%(asctime)s [%(name)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler
    console = logging.StreamHandler()
    console.setLevel(getattr(logging, log_level.upper()))
    console.setFormatter(formatter)
    logger.addHandler(console)

    # File handler (only rank 0)
    if rank == 0 and log_file:
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class DummyLogger:
    """Silent logger for non-root MPI ranks."""
    def info(self, *a, **kw): pass
    def error(self, *a, **kw): pass
    def warning(self, *a, **kw): pass
    def debug(self, *a, **kw): pass


# =============================================================================
# CONSOLE OUTPUT HELPERS
# =============================================================================

def print_header(title: str, logger, width: int = 70):
    """Log a formatted header."""
    logger.info("=" * width)
    logger.info(f" {title}")
    logger.info("=" * width)


def print_config_summary(cfg: PCAConfig, logger):
    """Log a summary of the configuration."""
    print_header("CONFIGURATION SUMMARY", logger)
    logger.info(f"  Run name: {cfg.run_name or '(auto)'}")
    logger.info(f"  Input: {cfg.input_path}")
    logger.info(f"  Output: {cfg.output_path}")
    logger.info(f"  Principal components (t): {cfg.n_components}")
    logger.info(f"  Normalization: {'global rescale' if cfg.style == 1 else 'clamp'}")
    logger.info(f"  Backend: {cfg.backend} ({cfg.n_workers} workers)")
    logger.info(f"  Plots: {cfg.plot_dir or 'disabled'}")
