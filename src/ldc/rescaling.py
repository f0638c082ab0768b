"""Pressure level pinning.

The artificial compressibility system only determines pressure up to a
constant. After every iteration the whole pressure field is shifted so the
reference node carries the target value.
"""

import numpy as np

from .boundary import reference_node


def rescale_pressure(q: np.ndarray, target: float) -> float:
    """Shift pressure so that p at the reference node equals target.

    Returns the applied shift (value at the reference node minus target).
    """
    i_ref, j_ref = reference_node(q.shape[0], q.shape[1])
    delta = q[i_ref, j_ref, 0] - target
    q[:, :, 0] -= delta
    return float(delta)
