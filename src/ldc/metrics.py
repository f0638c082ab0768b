"""Discretization error norms against an exact solution."""

import numpy as np

EQUATIONS = ("p", "u", "v")


def discretization_error_norms(q: np.ndarray, exact: np.ndarray) -> dict:
    """L1, L2 and Linf norms of q - exact over interior nodes.

    Sums are normalized by the total node count nx * ny.

    Returns
    -------
    dict
        Keys ``DE_L1_p``, ``DE_L2_p``, ``DE_Linf_p`` and likewise for u and v.
    """
    nx, ny = q.shape[:2]
    n_nodes = nx * ny
    error = q[1:-1, 1:-1, :] - exact[1:-1, 1:-1, :]

    norms = {}
    for k, name in enumerate(EQUATIONS):
        e = np.abs(error[:, :, k])
        norms[f"DE_L1_{name}"] = float(np.sum(e) / n_nodes)
        norms[f"DE_L2_{name}"] = float(np.sqrt(np.sum(e * e) / n_nodes))
        norms[f"DE_Linf_{name}"] = float(np.max(e)) if e.size else 0.0
    return norms
