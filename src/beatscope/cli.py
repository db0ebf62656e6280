"""
Command-line analysis of an audio file.

Runs the per-tick analysis stack over a track at a fixed frame rate and
writes the feature manifest next to it.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from beatscope.config import ConfigError, load_config


def analyze_file(
    audio_path: Path,
    output_path: Path,
    config_source=None,
    fps: int = None,
    export_npz: bool = False,
    progress_callback: callable = None,
) -> dict:
    """
    Analyse an audio file and write its manifest.

    Args:
        audio_path: Input audio file.
        output_path: JSON manifest destination.
        config_source: Preset name or JSON config path (None for defaults).
        fps: Override for the tick rate.
        export_npz: Also write a compressed NumPy archive beside the JSON.
        progress_callback: Optional callback(progress: int, message: str).

    Returns:
        The pipeline result dict.
    """
    from beatscope.pipeline import AudioPipeline

    def report_progress(pct: int, msg: str):
        pct_clamped = max(0, min(100, int(pct)))
        print(f"{pct_clamped:3d}% {msg}", flush=True)
        if progress_callback:
            progress_callback(pct_clamped, msg)

    report_progress(0, f"Processing audio: {audio_path}")

    analysis_config, palette_config = load_config(config_source)
    if fps is not None:
        analysis_config = dataclasses.replace(analysis_config, fps=fps).validate()

    report_progress(10, "Analyzing audio...")
    pipeline = AudioPipeline(analysis_config, palette_config)
    result = pipeline.process(audio_path)

    report_progress(
        80,
        f"Detected BPM: {result['bpm']:.0f}, Beats: {result['manifest']['metadata']['n_beats']}, "
        f"Duration: {result['duration']:.2f}s",
    )

    pipeline.exporter.export_json(result["manifest"], output_path)
    if export_npz:
        pipeline.exporter.export_numpy(
            result["features"],
            output_path.with_suffix(".npz"),
            palette_indices=result["palette_indices"],
        )

    report_progress(100, f"Wrote {output_path}")
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Extract beat, tempo and energy features from an audio file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output JSON manifest (default: <audio>_features.json)",
    )

    parser.add_argument(
        "-f", "--fps",
        type=int,
        default=None,
        help="Ticks per second (default: from config, 60)",
    )

    config_group = parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "-p", "--preset",
        default=None,
        help="Named configuration preset (default, sensitive, relaxed)",
    )
    config_group.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="JSON configuration file",
    )

    parser.add_argument(
        "--npz",
        action="store_true",
        help="Also write a compressed NumPy archive",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING - 10 * min(args.verbose, 2),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    output = args.output
    if output is None:
        output = args.audio.with_name(f"{args.audio.stem}_features.json")

    try:
        analyze_file(
            audio_path=args.audio,
            output_path=output,
            config_source=args.config or args.preset,
            fps=args.fps,
            export_npz=args.npz,
        )
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
