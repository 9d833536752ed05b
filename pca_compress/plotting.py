"""
Diagnostic plots for compression runs.

Figures are written to disk only; nothing here feeds back into the pipeline.
"""

import os
import numpy as np

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .evaluation import retained_energy


# =============================================================================
# EIGENVALUE SPECTRUM
# =============================================================================

def plot_eigen_spectrum(eigs, t, output_dir, logger, filename="pca_spectrum.png"):
    """
    Generate eigenvalue diagnostic plots.

    Creates a 2-panel figure showing:
    1. Scatter-matrix eigenvalues (log scale)
    2. Cumulative retained energy
    """
    os.makedirs(output_dir, exist_ok=True)

    eigs_pos = np.maximum(eigs, 0)
    ret_energy = retained_energy(eigs)

    fig, axes = plt.subplots(1, 2, figsize=(10, 4))

    # Eigenvalues
    ax = axes[0]
    positive = eigs_pos[eigs_pos > 0]
    if positive.size:
        ax.semilogy(positive, 'b-', linewidth=1.5)
    if 0 < t <= len(eigs_pos):
        ax.axvline(t - 1, color='r', linestyle='--', label=f't={t}')
        ax.legend()
    ax.set_xlabel('Component index')
    ax.set_ylabel('Eigenvalue')
    ax.set_title('Scatter Matrix Spectrum')
    ax.grid(True, alpha=0.3)

    # Retained energy
    ax = axes[1]
    ax.plot(np.arange(1, len(ret_energy) + 1), ret_energy * 100, 'b-', linewidth=1.5)
    if 0 < t <= len(ret_energy):
        ax.axvline(t, color='r', linestyle='--', label=f't={t}: {ret_energy[t-1]*100:.2f}%')
        ax.legend()
    ax.set_xlabel('Number of components')
    ax.set_ylabel('Retained energy (%)')
    ax.set_title('Cumulative Retained Energy')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    plot_path = os.path.join(output_dir, filename)
    plt.savefig(plot_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Saved spectrum plot to {plot_path}")
    return plot_path


# =============================================================================
# IMAGE COMPARISON
# =============================================================================

def plot_comparison(original, reconstructed, t, output_dir, logger, filename="pca_comparison.png"):
    """Side-by-side original, reconstruction and absolute difference."""
    os.makedirs(output_dir, exist_ok=True)

    fig, axes = plt.subplots(1, 3, figsize=(15, 5))

    axes[0].imshow(original, cmap='gray', vmin=0, vmax=255)
    axes[0].set_title('Original')

    axes[1].imshow(reconstructed, cmap='gray', vmin=0, vmax=255)
    axes[1].set_title(f'Reconstruction (t={t})')

    im = axes[2].imshow(np.abs(reconstructed - original), cmap='magma')
    axes[2].set_title('|Difference|')
    fig.colorbar(im, ax=axes[2], fraction=0.046, pad=0.04)

    for ax in axes:
        ax.axis('off')

    plt.tight_layout()

    plot_path = os.path.join(output_dir, filename)
    plt.savefig(plot_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Saved comparison plot to {plot_path}")
    return plot_path
