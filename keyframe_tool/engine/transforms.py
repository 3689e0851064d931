"""
Curve Transform Library

Named per-axis filters for rotation curves. Every transform takes one axis'
time series and an options dict and returns a new series of equal length:

    transform(samples, {"threshold": value}) -> np.ndarray

The meaning of "threshold" depends on the transform: window size for the
moving-average family, finite-difference order for derivative, clamp level
for the caps.

Boundary behaviours:
- lowpass/highpass: causal window, averages over the samples that exist near index 0
- gaussian: kernel values falling outside the series are skipped, no renormalization
- derivative: samples within `order` of either end are 0
- capMin/capMax: first sample is never rewritten
"""

import math

import numpy as np

from keyframe_tool.engine.channel import ChannelKind
from keyframe_tool.engine.euler import eulers_to_quaternions, quaternions_to_eulers
from keyframe_tool.engine.floats import f32_slice

# ==============================================================================
# CONSTANTS
# ==============================================================================

DEFAULT_WINDOW_SIZE = 2
DEFAULT_DERIVATIVE_ORDER = 2
DEFAULT_CAP_THRESHOLD = 0.1

# Curves are edited in Euler space, so `w` is never filtered
AXES = ("x", "y", "z")

# (min, max, step, initial) of the threshold control per transform
_WINDOW_RANGE = (1, 2000, 1, 1)

FORMULA_RANGES = {
    "capMin": (-2, 3, 0.01, 0.1),
    "capMax": (-2, 3, 0.01, 0.1),
    "lowpass": _WINDOW_RANGE,
    "highpass": _WINDOW_RANGE,
    "gaussian": _WINDOW_RANGE,
    "derivative": (0, 3, 1, 0),
}


def _option(options, default):
    if not options:
        return default
    value = options.get("threshold")
    return default if value is None else value


def _window(options, default=DEFAULT_WINDOW_SIZE):
    return max(1, int(math.floor(_option(options, default))))


# ==============================================================================
# TRANSFORMS
# ==============================================================================


def lowpass(source, options=None):
    """
    Causal moving average over up to `window` preceding samples (inclusive).

    Example: lowpass([1, 2, 3, 4], {"threshold": 2}) -> [1, 1.5, 2.5, 3.5]
    """
    source = np.asarray(source, dtype=np.float64)
    window = _window(options)

    if source.size == 0:
        return source.copy()

    cumulative = np.concatenate(([0.0], np.cumsum(source)))
    indices = np.arange(source.size)
    starts = np.maximum(0, indices - window + 1)

    return (cumulative[indices + 1] - cumulative[starts]) / (indices + 1 - starts)


def highpass(source, options=None):
    """Sample minus its causal moving average."""
    source = np.asarray(source, dtype=np.float64)
    return source - lowpass(source, options)


def gaussian_kernel(window):
    """
    Normalized Gaussian kernel of half-width floor(window / 2) and sigma window / 2.

    Returns:
        np.array: Kernel of length 2 * half + 1, centered on index half
    """
    half = int(math.floor(window / 2))
    sigma = window / 2.0

    x = np.arange(-half, half + 1, dtype=np.float64)
    kernel = np.exp(-0.5 * (x / sigma) ** 2) / (sigma * math.sqrt(2 * math.pi))

    return kernel / kernel.sum()


def gaussian(source, options=None):
    """
    Gaussian smoothing.

    Each sample is weighted by kernel[half + (j - i)], the entry at its
    signed offset from the kernel center, so the peak weight lands on the
    sample itself.

    Near the ends the kernel is truncated and NOT renormalized, so boundary
    samples are pulled towards zero.
    """
    source = np.asarray(source, dtype=np.float64)
    window = _window(options)

    kernel = gaussian_kernel(window)
    half = len(kernel) // 2

    out = np.zeros_like(source)
    for i in range(source.size):
        lo = max(0, i - half)
        hi = min(source.size - 1, i + half)
        offsets = np.arange(lo, hi + 1) - i
        out[i] = np.dot(source[lo : hi + 1], kernel[offsets + half])

    return out


def derivative_coefficients(order):
    """
    Finite-difference coefficients for offsets -order..order (0 excluded).

    Returns:
        dict: {offset: coefficient}
    """
    h = 1
    coefficients = {}

    for j in range(-order, order + 1):
        if j == 0:
            continue
        coefficients[j] = ((-1) ** (abs(j) - 1 + order) * h ** (order - 1) * float(j) ** (order - 1)) / (
            2 * abs(j) * math.factorial(abs(j)) * math.factorial(max(order - 1, 0))
        )

    return coefficients


def derivative(source, options=None):
    """
    Centered finite-difference derivative of a configurable order.

    Samples closer than `order` to either boundary cannot be computed and are 0.
    """
    source = np.asarray(source, dtype=np.float64)
    order = max(0, int(_option(options, DEFAULT_DERIVATIVE_ORDER)))
    coefficients = derivative_coefficients(order)

    out = np.zeros_like(source)
    for i in range(order, source.size - order):
        out[i] = sum(coefficient * source[i + j] for j, coefficient in coefficients.items())

    return out


def cap_min(source, options=None):
    """
    Hold samples below the threshold at the last sample that was at or above it.

    Example: cap_min([0.05, 0.2, 0.01, 0.3], {"threshold": 0.1}) -> [0.05, 0.2, 0.2, 0.3]
    """
    source = np.asarray(source, dtype=np.float64)
    threshold = _option(options, DEFAULT_CAP_THRESHOLD)

    out = np.empty_like(source)
    if source.size == 0:
        return out

    previous = source[0]
    for i, value in enumerate(source):
        if value >= threshold:
            previous = value
        out[i] = previous

    return out


def cap_max(source, options=None):
    """Hold samples above the threshold at the last sample that was at or below it."""
    source = np.asarray(source, dtype=np.float64)
    threshold = _option(options, DEFAULT_CAP_THRESHOLD)

    out = np.empty_like(source)
    if source.size == 0:
        return out

    previous = source[0]
    for i, value in enumerate(source):
        if value <= threshold:
            previous = value
        out[i] = previous

    return out


def identity(source, options=None):
    return np.asarray(source, dtype=np.float64).copy()


TRANSFORMERS = {
    "lowpass": lowpass,
    "highpass": highpass,
    "gaussian": gaussian,
    "derivative": derivative,
    "capMin": cap_min,
    "capMax": cap_max,
}


def get_transform(name):
    """
    Look up a transform by registry name.

    "none" (or None) maps to the identity transform.

    Raises:
        KeyError: If the name is not registered.
    """
    if name is None or name == "none":
        return identity
    if name not in TRANSFORMERS:
        raise KeyError(f"Unknown curve transform: {name!r} (available: {', '.join(TRANSFORMERS)})")
    return TRANSFORMERS[name]


# ==============================================================================
# TRACK APPLICATION
# ==============================================================================


def apply_track_transform(channel, transform, options=None, axes=None):
    """
    Run a transform over each Euler axis of a rotation channel.

    Every sample is normalized and decomposed to XYZ Euler angles, the
    transform runs on each enabled axis independently, and the angles are
    recomposed to quaternions.

    Args:
        channel: Channel to read (not modified)
        transform: Callable from TRANSFORMERS
        options: Transform options ({"threshold": ...})
        axes: Iterable of enabled axes ("x", "y", "z"); None enables all

    Returns:
        np.ndarray: New float32 values for the channel. Vector channels are
        returned as an unchanged copy.
    """
    if channel.kind is ChannelKind.VECTOR:
        return f32_slice(channel.values)
    elif channel.kind is not ChannelKind.QUATERNION:
        raise ValueError(f"Unsupported channel kind: {channel.kind}")

    if channel.frame_count == 0:
        return f32_slice(channel.values)

    eulers = quaternions_to_eulers(channel.samples())

    for index, axis in enumerate(AXES):
        if axes is not None and axis not in axes:
            continue
        eulers[:, index] = transform(eulers[:, index], options or {})

    quaternions = eulers_to_quaternions(eulers)
    quaternions[np.isnan(quaternions)] = 0.0

    return quaternions.astype(np.float32).ravel()
