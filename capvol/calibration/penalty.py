# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np


def difference_matrix(x: np.ndarray, order: int=2) -> np.ndarray:
    """
    Divided difference operator of the given order on the (possibly non-uniform) grid x, scaled by
    (x[-1] - x[0]) ** order so the result does not depend on the units of x.

    Returns an array of shape (len(x) - order, len(x)). On a uniform grid, order 2 rows are proportional to [1, -2, 1].
    """
    x = np.asarray(x, dtype=float)
    n = len(x)
    if order < 0:
        raise ValueError(f"'order' must be non-negative, received {order}")
    if order == 0:
        return np.eye(n)
    if n <= order:
        return np.zeros((0, n))

    D = np.eye(n)
    for k in range(1, order + 1):
        # k-th divided differences: (f[i+1..i+k] - f[i..i+k-1]) / (x[i+k] - x[i])
        D = (D[1:] - D[:-1]) / (x[k:] - x[:-k])[:, None]

    return D * (x[-1] - x[0]) ** order


def penalty_matrix(expiries: np.ndarray,
                   strikes: np.ndarray,
                   lambda_expiry: float,
                   lambda_strike: float) -> np.ndarray:
    """
    Curvature penalty on the row-major (expiry, strike) node grid.

    Stacks sqrt(lambda_expiry) * (D_T kron I_K) and sqrt(lambda_strike) * (I_T kron D_K), where D is the
    second-order (first-order if the axis has two nodes) difference matrix of each axis. An axis with a single
    node, or a zero coefficient, contributes no rows.
    """
    if lambda_expiry < 0 or lambda_strike < 0:
        raise ValueError("Penalty coefficients must be non-negative")

    n_expiries, n_strikes = len(expiries), len(strikes)
    blocks = [np.zeros((0, n_expiries * n_strikes))]

    if lambda_expiry > 0 and n_expiries > 1:
        D_T = difference_matrix(expiries, order=min(2, n_expiries - 1))
        blocks.append(np.sqrt(lambda_expiry) * np.kron(D_T, np.eye(n_strikes)))

    if lambda_strike > 0 and n_strikes > 1:
        D_K = difference_matrix(strikes, order=min(2, n_strikes - 1))
        blocks.append(np.sqrt(lambda_strike) * np.kron(np.eye(n_expiries), D_K))

    return np.vstack(blocks)
