"""
Compress an image with parallel PCA.

This script:
1. Loads the input image as a grayscale (height x width) matrix
2. Runs the parallel PCA pipeline (threads, or MPI ranks)
3. Writes the rank-t reconstruction as an image
4. Logs reconstruction metrics and optionally saves diagnostic plots

Usage:
    pca-compress --threads 4 --input image.jpg --components 20
    pca-compress --config config.yaml --style 1
    mpirun -np 4 pca-compress --config config.yaml --backend mpi
"""

import argparse
import logging
import sys

from .core import run_parallel_pca
from .data import read_image_to_matrix, write_matrix_to_image
from .errors import ConfigurationError, PCACompressError
from .evaluation import compression_ratio, psnr, reconstruction_error
from .utils import (
    BACKENDS,
    DummyLogger,
    PCAConfig,
    load_config,
    print_config_summary,
    print_header,
    save_config,
    setup_logging,
    validate_config,
)


def compress_image(cfg: PCAConfig, logger, comm=None):
    """
    Run one compression described by ``cfg``.

    Returns the PCAResult (None on non-root MPI ranks).
    """
    validate_config(cfg)

    image = read_image_to_matrix(cfg.input_path)
    n_samples, n_features = image.shape
    logger.info(f"Loaded {cfg.input_path}: {n_samples} x {n_features} pixels")

    if cfg.n_components > n_features:
        raise ConfigurationError(
            f"The number of principal components ({cfg.n_components}) cannot be greater "
            f"than the number of columns of the image ({n_features})"
        )

    if cfg.backend == "mpi":
        # Imported here so the threaded path never initializes MPI
        from .mpi_pca import run_pca_mpi
        result = run_pca_mpi(image, cfg.n_components, cfg.style, comm=comm, logger=logger)
        if result is None:
            return None
    else:
        result = run_parallel_pca(image, cfg.n_workers, cfg.n_components, cfg.style, logger=logger)

    write_matrix_to_image(cfg.output_path, result.data)
    logger.info(f"Wrote compressed image to {cfg.output_path}")

    abs_err, rel_err = reconstruction_error(image, result.data)
    logger.info(f"  Reconstruction error: abs={abs_err:.4e}, rel={rel_err:.4e}")
    logger.info(f"  PSNR: {psnr(image, result.data):.2f} dB")
    logger.info(f"  Compression ratio: {compression_ratio(n_samples, n_features, cfg.n_components):.2f}")

    if cfg.plot_dir:
        from .plotting import plot_comparison, plot_eigen_spectrum
        config_path = save_config(cfg, cfg.plot_dir)
        logger.info(f"Saved run configuration to {config_path}")
        plot_eigen_spectrum(result.eigenvalues, cfg.n_components, cfg.plot_dir, logger)
        plot_comparison(image, result.data, cfg.n_components, cfg.plot_dir, logger)

    return result


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Lossy image compression with parallel PCA")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML configuration file; flags override its values")
    parser.add_argument("--threads", "-n", type=int, default=None, dest="n_workers",
                        help="Number of worker threads")
    parser.add_argument("--input", "-i", type=str, default=None, dest="input_path",
                        help="Input image")
    parser.add_argument("--components", "-t", type=int, default=None, dest="n_components",
                        help="Number of principal components to keep")
    parser.add_argument("--style", "-s", type=int, choices=[0, 1], default=None,
                        help="Normalization: 0 = clamp, 1 = global rescale")
    parser.add_argument("--output", "-o", type=str, default=None, dest="output_path",
                        help="Output image (default: compressed_image.jpg)")
    parser.add_argument("--backend", type=str, choices=BACKENDS, default=None,
                        help="Parallel backend")
    parser.add_argument("--plot-dir", type=str, default=None, dest="plot_dir",
                        help="Directory for diagnostic plots")
    parser.add_argument("--log-level", type=str, default=None, dest="log_level",
                        help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--log-file", type=str, default=None, dest="log_file",
                        help="Also write the log to this file")
    return parser.parse_args(argv)


def build_config(args) -> PCAConfig:
    """Start from the config file (if any) and apply command-line overrides."""
    cfg = load_config(args.config) if args.config else PCAConfig()
    for name in ("n_workers", "input_path", "n_components", "style", "output_path",
                 "backend", "plot_dir", "log_level", "log_file"):
        value = getattr(args, name)
        if value is not None:
            setattr(cfg, name, value)
    return cfg


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        cfg = build_config(args)
    except ConfigurationError as e:
        logging.basicConfig()
        logging.getLogger("pca_compress").error(str(e))
        return 1

    rank, comm = 0, None
    if cfg.backend == "mpi":
        try:
            from mpi4py import MPI
        except ImportError as e:
            logging.basicConfig()
            logging.getLogger("pca_compress").error(
                f"The mpi backend needs mpi4py (pip install 'pca-compress[mpi]'): {e}"
            )
            return 1
        comm = MPI.COMM_WORLD
        rank = comm.Get_rank()
        # One worker per rank; --threads does not apply
        cfg.n_workers = comm.Get_size()

    log_level = cfg.log_level if hasattr(logging, str(cfg.log_level).upper()) else "INFO"
    logger = setup_logging("pca_compress", cfg.log_file, log_level, rank=rank)
    if rank != 0:
        logger = DummyLogger()

    print_header("PARALLEL PCA IMAGE COMPRESSION", logger)
    print_config_summary(cfg, logger)

    try:
        compress_image(cfg, logger, comm=comm)
    except PCACompressError as e:
        logger.error(f"ERROR: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
