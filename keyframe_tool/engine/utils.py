"""
Utilities Module
Common helper functions for file I/O, data conversion and caller-side scheduling.
"""

import csv
import os
import threading

import numpy as np

# ============================================================================
# File I/O Utilities
# ============================================================================


def ensure_output_dir(filepath):
    """
    Ensure the output directory exists for a given filepath.

    Args:
        filepath (str): Full path to output file.
    """
    directory = os.path.dirname(filepath)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def safe_overwrite(filepath):
    """
    Safely remove existing file to force overwrite.

    Args:
        filepath (str): Path to file to overwrite.

    Raises:
        RuntimeError: If file is locked or permission denied.
    """
    if os.path.exists(filepath):
        try:
            os.remove(filepath)
        except PermissionError:
            raise RuntimeError(
                f"Cannot overwrite {filepath} - file may be open in another program. " "Please close it and try again."
            )


def prepare_output_file(filepath):
    """
    Prepare output file by ensuring directory exists and clearing old file.

    Args:
        filepath (str): Path to output file.
    """
    ensure_output_dir(filepath)
    safe_overwrite(filepath)


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def convert_numpy_to_native(obj):
    """
    Recursively convert NumPy types to native Python types for JSON serialization.

    Args:
        obj: Object potentially containing NumPy types

    Returns:
        Object with NumPy types converted to native Python types
    """
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {key: convert_numpy_to_native(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy_to_native(item) for item in obj]
    else:
        return obj


# ============================================================================
# CSV Utilities
# ============================================================================


def write_dict_list_to_csv(data, filepath, fieldnames=None):
    """
    Write list of dictionaries to CSV file.

    Args:
        data: List of dictionaries
        filepath: Output CSV path
        fieldnames: Optional list of field names (defaults to keys of first dict)
    """
    if not data:
        return

    if fieldnames is None:
        fieldnames = data[0].keys()

    prepare_output_file(filepath)

    with open(filepath, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(data)


# ============================================================================
# Scheduling
# ============================================================================


def debounce(wait):
    """
    Decorator that delays calls until `wait` seconds pass without a new call.

    The engine re-walks every channel on each update, so UI controls that fire
    many change events should be wrapped with this before calling
    OverrideEngine.update(). Only the last call's arguments are used.

    Args:
        wait: Quiet period in seconds

    Returns:
        Decorator producing a debounced function with a `cancel()` attribute
    """

    def decorator(fn):
        lock = threading.Lock()
        timer = None

        def debounced(*args, **kwargs):
            nonlocal timer
            with lock:
                if timer is not None:
                    timer.cancel()
                timer = threading.Timer(wait, fn, args=args, kwargs=kwargs)
                timer.daemon = True
                timer.start()

        def cancel():
            nonlocal timer
            with lock:
                if timer is not None:
                    timer.cancel()
                    timer = None

        debounced.cancel = cancel
        debounced.__wrapped__ = fn
        return debounced

    return decorator
