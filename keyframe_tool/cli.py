"""
Keyframe Tool - Main CLI Entry Point
Applies parameter overrides to animation clips and exports the processed samples.
Supports single and batch clip processing with robust error handling.

Usage:
    keyframe-tool <clip.json> [clip2.json ...] [--params params.json] [--time 12.5]
                  [--lengthen 1] [--output output/] [--plot]
"""

import argparse
import json
import os
import sys
import time
import traceback

from keyframe_tool.engine.clip_loader import get_clip_metadata, load_clip, save_clip
from keyframe_tool.engine.config import Params, UpdateFlags, load_params
from keyframe_tool.engine.dopesheet_export import export_dopesheet, export_valleys
from keyframe_tool.engine.keyframe_analyzer import KeyframeAnalyzer
from keyframe_tool.engine.original_store import OriginalStore
from keyframe_tool.engine.overrides import OverrideEngine
from keyframe_tool.engine.utils import convert_numpy_to_native, ensure_output_dir, prepare_output_file


def process_clip(clip_file, params, output_root="output", lengthen=0, playback_time=None, plot=False):
    """
    Run the full override pipeline on a single clip file.

    Continues execution even if individual export steps fail,
    logging errors for debugging.

    Args:
        clip_file (str): Path to clip JSON file
        params (Params): Parameters to apply
        output_root (str): Directory that receives one sub-directory per clip
        lengthen (int): Times to lengthen the clip before snapshotting
        playback_time (float): Playback time for delay shifts (None = params.time)
        plot (bool): Also save curve/valley plots

    Returns:
        dict: Summary of the run (or None if critical failure)
    """
    base_name = os.path.splitext(os.path.basename(clip_file))[0]
    output_dir = os.path.join(output_root, base_name)
    ensure_output_dir(os.path.join(output_dir, ""))

    errors = []

    print(f"\n{'='*60}")
    print(f"Processing: {os.path.basename(clip_file)}")
    print(f"{'='*60}")

    start_time = time.time()

    # STEP 1: Load clip (CRITICAL - must succeed)
    print("Loading clip...")
    try:
        clip = load_clip(clip_file)
        metadata = get_clip_metadata(clip)
        print(f"  Duration: {metadata.get('duration', 0):.2f}s")
        print(f"  Frame Rate: {metadata.get('frame_rate', 0):.2f} FPS")
        print(f"  Channels: {metadata.get('channel_count', 0)}")
    except Exception as e:
        print(f"✗ CRITICAL: Failed to load clip: {str(e)}")
        return None

    # STEP 2: Snapshot and update (CRITICAL)
    print("\nApplying overrides...")
    try:
        store = OriginalStore()
        store.capture(clip, lengthen=lengthen)

        engine = OverrideEngine(store)
        report = engine.update(clip, params, UpdateFlags.all(), time=playback_time)
        print(f"  ✓ {report.updated} channels updated in {report.elapsed_ms:.2f}ms")
        if report.skipped:
            print(f"  ⚠️  {len(report.skipped)} channels skipped (no original samples)")
    except Exception as e:
        print(f"✗ CRITICAL: Override update failed: {str(e)}")
        return None

    summary = {
        "clip": clip_file,
        "metadata": metadata,
        "updated_channels": report.updated,
        "skipped_channels": report.skipped,
        "valleys": report.valleys,
        "processed_duration": clip.duration,
    }

    # STEP 3: Export processed clip (NON-CRITICAL)
    print("\nExporting processed clip...")
    try:
        clip_path = os.path.join(output_dir, "processed_clip.json")
        save_clip(clip, clip_path)
        print(f"  ✓ Clip saved: {clip_path}")
    except Exception as e:
        print(f"✗ Clip export failed: {str(e)}")
        errors.append(("Clip Export", str(e), traceback.format_exc()))

    # STEP 4: Dopesheet and valleys (NON-CRITICAL)
    print("\nExporting dopesheet...")
    try:
        export_dopesheet(clip, os.path.join(output_dir, "dopesheet.csv"))
        if report.valleys:
            rotation_ids = [i for i, channel in enumerate(clip.channels) if channel.is_rotation]
            times = store.original_of(clip.name, rotation_ids[0]).times if rotation_ids else None
            export_valleys(report.valleys, os.path.join(output_dir, "valleys.csv"), times)
        print(f"  ✓ Dopesheet exported ({len(report.valleys)} valleys)")
    except Exception as e:
        print(f"✗ Dopesheet export failed: {str(e)}")
        errors.append(("Dopesheet Export", str(e), traceback.format_exc()))

    # STEP 5: Keyframe analysis (NON-CRITICAL)
    print("\nAnalyzing keyframes...")
    try:
        analyzer = KeyframeAnalyzer()
        analyzer.analyze(clip.channels)
        summary["channels"] = analyzer.summarize()
        summary["distinct_times"] = len(analyzer.times)
    except Exception as e:
        print(f"✗ Keyframe analysis failed: {str(e)}")
        errors.append(("Keyframe Analysis", str(e), traceback.format_exc()))

    # STEP 6: Plots (OPTIONAL)
    if plot:
        print("\nPlotting...")
        try:
            from keyframe_tool.visualization.matplotlib_viewer import CurveVisualizer

            visualizer = CurveVisualizer(clip)
            visualizer.plot_motion_valleys(params.space, os.path.join(output_dir, "valleys.png"))
            if clip.rotation_channels():
                visualizer.plot_channel(".quaternion", save_path=os.path.join(output_dir, "first_rotation.png"))
        except Exception as e:
            print(f"✗ Plotting failed: {str(e)}")
            errors.append(("Plotting", str(e), traceback.format_exc()))

    # STEP 7: Summary
    try:
        json_path = os.path.join(output_dir, "summary.json")
        prepare_output_file(json_path)
        with open(json_path, "w") as f:
            json.dump(convert_numpy_to_native(summary), f, indent=2)
        print(f"  ✓ Summary saved: {json_path}")
    except Exception as e:
        print(f"✗ Failed to write summary: {str(e)}")
        errors.append(("Summary", str(e), traceback.format_exc()))

    elapsed = time.time() - start_time
    print(f"\n{'='*60}")
    print(f"✓ Processing Complete ({elapsed:.2f}s)")
    print(f"{'='*60}")
    print(f"  Results saved to: {output_dir}")

    if errors:
        print(f"\n⚠ {len(errors)} step(s) failed:")
        for step, msg, _ in errors:
            print(f"    - {step}: {msg}")

        error_log_path = os.path.join(output_dir, "errors.log")
        try:
            with open(error_log_path, "w") as f:
                f.write(f"Keyframe Tool Error Log - {clip_file}\n")
                f.write(f"{'='*60}\n\n")
                for step, msg, trace in errors:
                    f.write(f"[{step}]\n")
                    f.write(f"Error: {msg}\n")
                    f.write(f"Traceback:\n{trace}\n")
                    f.write(f"{'-'*60}\n\n")
            print(f"\nDetailed error log saved to: {error_log_path}")
        except OSError as e:
            print(f"✗ Could not write error log: {str(e)}")

    summary["errors"] = [step for step, _, _ in errors]
    return summary


def build_parser():
    parser = argparse.ArgumentParser(prog="keyframe-tool", description="Retime and reshape animation clips.")
    parser.add_argument("clips", nargs="+", help="Clip JSON file(s)")
    parser.add_argument("--params", help="Parameter JSON file")
    parser.add_argument("--time", type=float, default=None, help="Playback time used for delay shifts")
    parser.add_argument("--lengthen", type=int, default=0, help="Lengthen clips N times before processing")
    parser.add_argument("--output", default="output", help="Output directory")
    parser.add_argument("--plot", action="store_true", help="Save curve and valley plots")
    return parser


def main(argv=None):
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    try:
        params = load_params(args.params) if args.params else Params()
    except Exception as e:
        print(f"✗ Invalid parameter file: {str(e)}")
        return 1

    valid_files = []
    for clip_file in args.clips:
        if not os.path.exists(clip_file):
            print(f"✗ File not found: {clip_file}")
            continue
        if not clip_file.lower().endswith(".json"):
            print(f"✗ Not a clip file: {clip_file}")
            continue
        valid_files.append(clip_file)

    if not valid_files:
        print("✗ No valid clip files provided.")
        return 1

    print(f"\nKeyframe Tool - Batch Processing")
    print(f"{'='*60}")
    print(f"Processing {len(valid_files)} file(s)...")

    results = []
    for clip_file in valid_files:
        summary = process_clip(
            clip_file,
            params,
            output_root=args.output,
            lengthen=args.lengthen,
            playback_time=args.time,
            plot=args.plot,
        )
        results.append((clip_file, summary))

    success_count = sum(1 for _, summary in results if summary is not None)
    print(f"\n\n{'='*60}")
    print(f"BATCH PROCESSING COMPLETE")
    print(f"{'='*60}")
    print(f"Files processed: {len(valid_files)}")
    print(f"Successful: {success_count}")
    print(f"Failed: {len(valid_files) - success_count}")

    return 0 if success_count == len(valid_files) else 1


if __name__ == "__main__":
    sys.exit(main())
