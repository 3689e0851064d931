"""
Rotation/Euler Bridge

Converts unit quaternions (x, y, z, w) to intrinsic XYZ Euler angles in
radians and back. Rotation curves are edited in angle space, so every
curve filter and rotation override goes through these functions.

Conversion goes through the rotation matrix elements:
    m11 = 1 - 2(y^2 + z^2)   m12 = 2(xy - wz)   m13 = 2(xz + wy)
    m22 = 1 - 2(x^2 + z^2)   m23 = 2(yz - wx)
    m32 = 2(yz + wx)         m33 = 1 - 2(x^2 + y^2)
"""

import numpy as np

# |m13| above this is treated as gimbal lock (y = +-90 degrees)
GIMBAL_LOCK_LIMIT = 0.9999999


def normalize_quaternions(quaternions):
    """
    Normalize quaternions to unit length.

    Zero-length rows are returned as the identity rotation.

    Args:
        quaternions: np.array (N, 4) or (4,)

    Returns:
        np.array: float64 unit quaternions with the input's shape
    """
    q = np.asarray(quaternions, dtype=np.float64)
    single = q.ndim == 1
    q = np.atleast_2d(q)

    norms = np.linalg.norm(q, axis=1, keepdims=True)
    out = np.zeros_like(q)
    out[:, 3] = 1.0

    valid = norms[:, 0] > 0
    out[valid] = q[valid] / norms[valid]

    return out[0] if single else out


def quaternions_to_eulers(quaternions):
    """
    Convert quaternions to intrinsic XYZ Euler angles.

    Args:
        quaternions: np.array (N, 4) in (x, y, z, w) order

    Returns:
        np.array: (N, 3) Euler angles in radians
    """
    q = np.atleast_2d(normalize_quaternions(quaternions))
    x, y, z, w = q[:, 0], q[:, 1], q[:, 2], q[:, 3]

    m11 = 1 - 2 * (y * y + z * z)
    m12 = 2 * (x * y - w * z)
    m13 = 2 * (x * z + w * y)
    m22 = 1 - 2 * (x * x + z * z)
    m23 = 2 * (y * z - w * x)
    m32 = 2 * (y * z + w * x)
    m33 = 1 - 2 * (x * x + y * y)

    eulers = np.empty((q.shape[0], 3), dtype=np.float64)
    eulers[:, 1] = np.arcsin(np.clip(m13, -1.0, 1.0))

    locked = np.abs(m13) >= GIMBAL_LOCK_LIMIT
    free = ~locked

    eulers[free, 0] = np.arctan2(-m23[free], m33[free])
    eulers[free, 2] = np.arctan2(-m12[free], m11[free])

    eulers[locked, 0] = np.arctan2(m32[locked], m22[locked])
    eulers[locked, 2] = 0.0

    return eulers


def eulers_to_quaternions(eulers):
    """
    Convert intrinsic XYZ Euler angles to quaternions.

    Args:
        eulers: np.array (N, 3) in radians

    Returns:
        np.array: (N, 4) unit quaternions in (x, y, z, w) order
    """
    e = np.atleast_2d(np.asarray(eulers, dtype=np.float64))

    c1, c2, c3 = np.cos(e[:, 0] / 2), np.cos(e[:, 1] / 2), np.cos(e[:, 2] / 2)
    s1, s2, s3 = np.sin(e[:, 0] / 2), np.sin(e[:, 1] / 2), np.sin(e[:, 2] / 2)

    quaternions = np.empty((e.shape[0], 4), dtype=np.float64)
    quaternions[:, 0] = s1 * c2 * c3 + c1 * s2 * s3
    quaternions[:, 1] = c1 * s2 * c3 - s1 * c2 * s3
    quaternions[:, 2] = c1 * c2 * s3 + s1 * s2 * c3
    quaternions[:, 3] = c1 * c2 * c3 - s1 * s2 * s3

    return quaternions


def quaternion_to_euler(quaternion):
    """
    Convert one quaternion (x, y, z, w) to an XYZ Euler triple.

    Returns:
        tuple: (x, y, z) in radians
    """
    x, y, z = quaternions_to_eulers(np.asarray(quaternion, dtype=np.float64).reshape(1, 4))[0]
    return float(x), float(y), float(z)


def euler_to_quaternion(x, y, z):
    """
    Convert one XYZ Euler triple to a quaternion.

    Returns:
        tuple: (x, y, z, w)
    """
    qx, qy, qz, qw = eulers_to_quaternions(np.array([[x, y, z]], dtype=np.float64))[0]
    return float(qx), float(qy), float(qz), float(qw)


def angular_distance(q1, q2):
    """
    Rotation angle between two quaternions in radians.

    q and -q describe the same rotation, so the sign is ignored.
    """
    a = normalize_quaternions(q1)
    b = normalize_quaternions(q2)
    dot = np.clip(np.abs(np.sum(a * b, axis=-1)), 0.0, 1.0)
    return 2 * np.arccos(dot)
