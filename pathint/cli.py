"""
Command-line interface for the path integral ensemble sampler.
"""

import argparse
import logging
import sys
from pathlib import Path
from pathint.exceptions import DegenerateNormalizationError
from pathint.params import SimulationParameters, NOISE_KINDS
from pathint.simulation.ensemble import EnsembleEngine, PathEnsemble
from pathint.live.driver import AnimationDriver
from pathint.visualization import plot_ensemble, plot_action_histogram


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns
    -------
    argparse.Namespace
        Parsed command-line arguments
    """
    defaults = SimulationParameters()

    parser = argparse.ArgumentParser(
        description="Feynman path integral Monte Carlo sampler for the harmonic oscillator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One ensemble, saved to a file
  %(prog)s --num-paths 1000 --seed 42 --output paths.png --no-plot

  # Animation loop, regenerating every 120 ticks
  %(prog)s --live --frames 600 --regenerate-every 120 --output live.png
        """,
    )

    parser.add_argument(
        "--num-paths",
        type=int,
        default=defaults.num_paths,
        help=f"Number of paths in the ensemble (default: {defaults.num_paths})",
    )

    parser.add_argument(
        "--time-steps",
        type=int,
        default=defaults.time_steps,
        help=f"Time intervals per path (default: {defaults.time_steps})",
    )

    parser.add_argument(
        "--hbar",
        type=float,
        default=defaults.hbar,
        help=f"Reduced Planck constant (default: {defaults.hbar})",
    )

    parser.add_argument(
        "--mass",
        type=float,
        default=defaults.mass,
        help=f"Particle mass (default: {defaults.mass})",
    )

    parser.add_argument(
        "--dt",
        type=float,
        default=defaults.dt,
        help=f"Time-step width (default: {defaults.dt})",
    )

    parser.add_argument(
        "--dx",
        type=float,
        default=defaults.dx,
        help=f"Spatial scale, accepted but unused by the sampler (default: {defaults.dx})",
    )

    parser.add_argument(
        "--start-pos",
        type=float,
        default=defaults.start_pos,
        help=f"Start position of every path (default: {defaults.start_pos})",
    )

    parser.add_argument(
        "--end-pos",
        type=float,
        default=defaults.end_pos,
        help=f"End position of every path (default: {defaults.end_pos})",
    )

    parser.add_argument(
        "--noise-scale",
        type=float,
        default=defaults.noise_scale,
        help=f"Amplitude of interior perturbations, 0 disables (default: {defaults.noise_scale})",
    )

    parser.add_argument(
        "--noise",
        choices=NOISE_KINDS,
        default=defaults.noise,
        help=f"Perturbation distribution (default: {defaults.noise})",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible ensembles (default: unseeded)",
    )

    # Live mode options
    parser.add_argument(
        "--live",
        action="store_true",
        help="Run the animation loop instead of a single regeneration",
    )

    parser.add_argument(
        "--frames",
        type=int,
        default=600,
        help="Number of ticks to run in live mode (default: 600)",
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=60.0,
        help="Target ticks per second in live mode (default: 60)",
    )

    parser.add_argument(
        "--regenerate-every",
        type=int,
        default=300,
        help="Regenerate the ensemble every N ticks in live mode (default: 300)",
    )

    parser.add_argument(
        "--render-every",
        type=int,
        default=60,
        help="Re-plot to --output every N ticks in live mode (default: 60)",
    )

    parser.add_argument(
        "--max-draw",
        type=int,
        default=200,
        help="Approximate maximum number of paths drawn in the plot (default: 200)",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path to save the plot (optional)",
    )

    parser.add_argument(
        "--histogram",
        type=str,
        default=None,
        help="Path to save an action histogram (optional)",
    )

    parser.add_argument(
        "--no-plot",
        action="store_true",
        help="Do not display the plot (useful for headless execution)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments

    Raises
    ------
    ValueError
        If arguments are invalid
    """
    if args.frames <= 0:
        raise ValueError("frames must be positive")

    if args.fps <= 0:
        raise ValueError("fps must be positive")

    if args.regenerate_every <= 0:
        raise ValueError("regenerate-every must be positive")

    if args.render_every <= 0:
        raise ValueError("render-every must be positive")

    if args.max_draw <= 0:
        raise ValueError("max-draw must be positive")

    for output in (args.output, args.histogram):
        if output:
            output_path = Path(output)
            if not output_path.parent.exists():
                raise ValueError(
                    f"Output directory does not exist: {output_path.parent}"
                )


def build_params(args: argparse.Namespace) -> SimulationParameters:
    """Build the parameter snapshot from parsed arguments."""
    return SimulationParameters(
        num_paths=args.num_paths,
        time_steps=args.time_steps,
        hbar=args.hbar,
        mass=args.mass,
        dt=args.dt,
        dx=args.dx,
        start_pos=args.start_pos,
        end_pos=args.end_pos,
        noise_scale=args.noise_scale,
        noise=args.noise,
    )


def print_summary(ensemble: PathEnsemble) -> None:
    """Print ensemble statistics."""
    stats = ensemble.get_statistics()
    params = ensemble.params

    print("=" * 70)
    print("PATH INTEGRAL ENSEMBLE")
    print("=" * 70)
    print(f"Paths: {stats['num_paths']} | Time Steps: {stats['time_steps']}")
    print(f"ħ: {params.hbar} | Mass: {params.mass} | dt: {params.dt}")
    print(f"Endpoints: {params.start_pos:+.2f} -> {params.end_pos:+.2f}")
    if stats['num_paths']:
        print(
            f"Action: min {stats['action_min']:.4f} | "
            f"mean {stats['action_mean']:.4f} | max {stats['action_max']:.4f}"
        )
        print(
            f"|Amplitude|: mean {stats['magnitude_mean']:.4f} | "
            f"max {stats['magnitude_max']:.4f}"
        )
        total = stats['total_amplitude']
        print(f"Total amplitude: {total.real:.4f} {total.imag:+.4f}i")
    if stats['degenerate']:
        print("Warning: amplitudes are unnormalized (degenerate ensemble)")
    print("=" * 70)


def run_live_mode(args: argparse.Namespace, params: SimulationParameters) -> int:
    """Run the animation loop.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments
    params : SimulationParameters
        Initial parameters

    Returns
    -------
    int
        Exit code
    """
    renderer = None
    if args.output:
        def renderer(ensemble):
            plot_ensemble(
                ensemble,
                max_paths=args.max_draw,
                output_path=args.output,
                show_plot=False,
            )

    def report(tick_info):
        if tick_info["regenerated"]:
            print(
                f"Tick {tick_info['frame_count']}: regenerated "
                f"{tick_info['num_paths']} paths (generation {tick_info['generation']})"
            )

    engine = EnsembleEngine(seed=args.seed)
    driver = AnimationDriver(
        engine,
        params,
        regenerate_every=args.regenerate_every,
        frame_interval=1.0 / args.fps,
        renderer=renderer,
        render_every=args.render_every,
        callback=report,
    )

    print(
        f"Running {args.frames} ticks at {args.fps:.0f} fps, "
        f"regenerating every {args.regenerate_every} ticks (Ctrl+C to stop)"
    )
    driver.start(max_frames=args.frames)

    status = driver.get_status()
    print(
        f"\nFinished: {status['frame_count']} ticks, "
        f"{status['regeneration_count']} regenerations, {status['error_count']} errors"
    )
    print_summary(engine.current_ensemble())

    if args.output:
        print(f"Plot saved to: {args.output}")

    return 0


def main(argv=None) -> int:
    """Main entry point for the CLI.

    Returns
    -------
    int
        Exit code (0 for success, 1 for error)
    """
    try:
        args = parse_args(argv)
        validate_args(args)

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        params = build_params(args)

        if args.live:
            return run_live_mode(args, params)

        engine = EnsembleEngine(seed=args.seed)
        try:
            ensemble = engine.regenerate(params)
        except DegenerateNormalizationError as e:
            print(f"Error: {e}", file=sys.stderr)
            print_summary(e.ensemble)
            return 1

        print_summary(ensemble)

        if args.output or not args.no_plot:
            plot_ensemble(
                ensemble,
                max_paths=args.max_draw,
                output_path=args.output,
                show_plot=not args.no_plot,
            )
        if args.output:
            print(f"Plot saved to: {args.output}")

        if args.histogram:
            if len(ensemble) == 0:
                print("Histogram skipped: ensemble has no paths")
            else:
                plot_action_histogram(ensemble, output_path=args.histogram, show_plot=False)
                print(f"Histogram saved to: {args.histogram}")

        return 0

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
