"""Visualization utilities for plotting path ensembles."""

import matplotlib
# Use non-interactive backend for headless environments
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from typing import Optional, Tuple
from pathlib import Path
from pathint.simulation.ensemble import PathEnsemble
from pathint.simulation.path_sampler import harmonic_potential


def amplitude_to_rgba(amplitude: complex) -> Tuple[float, float, float, float]:
    """Map a complex amplitude to an RGBA color.

    The phase picks the hue through three cosines offset by 2π/3; the
    magnitude sets the opacity, saturating at |amplitude| = 0.1.

    Parameters
    ----------
    amplitude : complex
        Path amplitude

    Returns
    -------
    tuple
        (r, g, b, alpha), each in [0, 1]
    """
    magnitude = abs(amplitude)
    phase = np.arctan2(amplitude.imag, amplitude.real)

    r = 0.5 + 0.5 * np.cos(phase)
    g = 0.5 + 0.5 * np.cos(phase + 2 * np.pi / 3)
    b = 0.5 + 0.5 * np.cos(phase + 4 * np.pi / 3)
    alpha = min(magnitude * 10, 1.0)

    return float(r), float(g), float(b), float(alpha)


def _finish(fig, output_path: Optional[str], show_plot: bool) -> None:
    if output_path:
        output_path_abs = Path(output_path).resolve()
        output_path_abs.parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(str(output_path_abs), dpi=150, bbox_inches='tight')

    if show_plot:
        plt.show()
    else:
        plt.close(fig)


def plot_ensemble(
    ensemble: PathEnsemble,
    max_paths: int = 200,
    output_path: Optional[str] = None,
    show_plot: bool = True,
) -> None:
    """Plot ensemble paths colored by amplitude.

    Positions run along the x-axis and time slices along the y-axis, with
    the harmonic potential drawn along the bottom and the fixed endpoints
    marked in red.

    Parameters
    ----------
    ensemble : PathEnsemble
        Ensemble to draw
    max_paths : int, default=200
        Approximate limit on drawn paths. Paths are taken every
        ``len(ensemble) // max_paths`` entries, so up to about twice this
        many may be drawn
    output_path : str, optional
        Path to save the plot
    show_plot : bool, default=True
        Whether to display the plot
    """
    params = ensemble.params
    time_steps = params.time_steps

    fig, ax = plt.subplots(figsize=(12, 8), dpi=100)
    ax.set_facecolor('black')

    # Potential well along the bottom of the plot
    xs = np.linspace(-5, 5, 201)
    ax.plot(
        xs,
        -0.1 * time_steps + harmonic_potential(xs) * 0.02 * time_steps,
        color='#4A90E2',
        linewidth=2,
        label='Harmonic Potential',
    )

    shown = 0
    if len(ensemble) > 0:
        stride = max(1, len(ensemble) // max(1, max_paths))
        steps = np.arange(time_steps + 1)
        for i in range(0, len(ensemble), stride):
            ax.plot(
                ensemble.positions[i],
                steps,
                color=amplitude_to_rgba(complex(ensemble.amplitudes[i])),
                linewidth=1,
            )
            shown += 1

    ax.scatter(
        [params.start_pos, params.end_pos],
        [0, time_steps],
        color='red',
        s=40,
        zorder=3,
        label='Start/End',
    )

    title = (
        f"Paths: {len(ensemble)} (showing {shown}) | "
        f"Time Steps: {time_steps} | ħ: {params.hbar} | Mass: {params.mass}"
    )
    if ensemble.degenerate:
        title += " | unnormalized"

    ax.set_title(title, fontsize=12)
    ax.set_xlabel('Position', fontsize=11)
    ax.set_ylabel('Time Step', fontsize=11)
    ax.set_xlim(-5, 5)
    ax.legend(loc='upper right', fontsize=9)
    ax.grid(True, alpha=0.2)
    plt.tight_layout()

    _finish(fig, output_path, show_plot)


def plot_action_histogram(
    ensemble: PathEnsemble,
    bins: int = 50,
    output_path: Optional[str] = None,
    show_plot: bool = True,
) -> None:
    """Plot the distribution of path actions.

    Parameters
    ----------
    ensemble : PathEnsemble
        Ensemble to summarize
    bins : int, default=50
        Number of histogram bins
    output_path : str, optional
        Path to save the plot
    show_plot : bool, default=True
        Whether to display the plot
    """
    if len(ensemble) == 0:
        return

    stats = ensemble.get_statistics()

    fig, ax = plt.subplots(figsize=(10, 6), dpi=100)
    ax.hist(ensemble.actions, bins=bins, color='steelblue', alpha=0.8)
    ax.axvline(
        stats['action_mean'],
        color='red',
        linestyle='--',
        linewidth=1.5,
        label=f"Mean: {stats['action_mean']:.3f}",
    )
    ax.set_title(f"Action distribution ({stats['num_paths']} paths)", fontsize=12)
    ax.set_xlabel('Action', fontsize=11)
    ax.set_ylabel('Count', fontsize=11)
    ax.legend(loc='best', fontsize=9)
    ax.grid(True, alpha=0.3)
    plt.tight_layout()

    _finish(fig, output_path, show_plot)
