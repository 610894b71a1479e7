"""numba kernels. Importing this module requires numba."""

import numpy as np
from numba import njit, prange


@njit(parallel=True, nogil=True, cache=True)
def surfnorm_shade(z, sx, sy, sz, scale, out):
    """Surface-normal shading with edge replication, written into ``out``."""
    rows, cols = z.shape
    for r in prange(rows):
        rn = r - 1 if r > 0 else 0
        rs = r + 1 if r < rows - 1 else rows - 1
        for c in range(cols):
            if np.isnan(z[r, c]):
                out[r, c] = np.nan
                continue
            cw = c - 1 if c > 0 else 0
            ce = c + 1 if c < cols - 1 else cols - 1
            dzdx = (z[r, ce] - z[r, cw]) * scale * 0.5
            dzdy = (z[rs, c] - z[rn, c]) * scale * 0.5
            inv_len = 1.0 / np.sqrt(dzdx * dzdx + dzdy * dzdy + 1.0)
            out[r, c] = (-dzdx * sx - dzdy * sy + sz) * inv_len
