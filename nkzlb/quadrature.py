import numpy as np
from quantecon.quad import qnwnorm


def _sqrt_vcv(vcv):
    '''This function returns a square root factor L with L @ L.T = vcv.
       Diagonal matrices may contain zero variances'''

    diagonal = np.diag(np.diag(vcv))

    if np.array_equal(vcv, diagonal):
        return np.diag(np.sqrt(np.diag(vcv)))

    return np.linalg.cholesky(vcv)


def _degenerate(n):
    '''A single node at zero carries all the mass when every variance is zero'''

    return np.zeros((1, n)), np.ones(1)


def qnwmonomial1(vcv):
    '''Monomial integration rule with 2N nodes for N jointly normal shocks
       with mean zero and covariance vcv'''

    n = vcv.shape[0]

    if not np.any(vcv):
        return _degenerate(n)

    n_nodes = 2 * n

    # In each node, random variable i takes value either 1 or -1, and
    # all other variables take value 0
    z1 = np.zeros((n_nodes, n))
    for i in range(n):
        z1[2 * i:2 * (i + 1), i] = [1, -1]

    R = np.sqrt(n) * _sqrt_vcv(vcv)
    ε_nodes = z1 @ R.T
    ω_nodes = np.ones(n_nodes) / n_nodes

    return ε_nodes, ω_nodes


def qnwmonomial2(vcv):
    '''Monomial integration rule with 2N^2 + 1 nodes for N jointly normal
       shocks with mean zero and covariance vcv'''

    n = vcv.shape[0]

    if not np.any(vcv):
        return _degenerate(n)

    z0 = np.zeros((1, n))

    z1 = np.zeros((2 * n, n))
    for i in range(n):
        z1[2 * i:2 * (i + 1), i] = [1, -1]

    # In each node, a pair of random variables (p, q) takes the values
    # (1, 1), (1, -1), (-1, 1) or (-1, -1), and all other variables take value 0
    z2 = np.zeros((2 * n * (n - 1), n))
    i = 0
    for p in range(n - 1):
        for q in range(p + 1, n):
            z2[4 * i:4 * (i + 1), p] = [1, -1, 1, -1]
            z2[4 * i:4 * (i + 1), q] = [1, 1, -1, -1]
            i += 1

    sqrt_vcv = _sqrt_vcv(vcv)
    R = np.sqrt(n + 2) * sqrt_vcv
    S = np.sqrt((n + 2) / 2) * sqrt_vcv
    ε_nodes = np.vstack([z0, z1 @ R.T, z2 @ S.T])

    ω_nodes = np.concatenate([2 / (n + 2) * np.ones(z0.shape[0]),
                              (4 - n) / (2 * (n + 2)**2) * np.ones(z1.shape[0]),
                              1 / (n + 2)**2 * np.ones(z2.shape[0])])

    return ε_nodes, ω_nodes


def qnwgausshermite(vcv, n_per_dim=3):
    '''Gauss-Hermite product rule with n_per_dim nodes in every dimension'''

    n = vcv.shape[0]

    if not np.any(vcv):
        return _degenerate(n)

    # Standard normal nodes are rescaled so that zero variances are allowed
    z, ω_nodes = qnwnorm([n_per_dim] * n, np.zeros(n), np.eye(n))
    ε_nodes = np.reshape(z, (-1, n)) @ _sqrt_vcv(vcv).T

    return ε_nodes, ω_nodes


rules = {"monomial1": qnwmonomial1,
         "monomial2": qnwmonomial2,
         "gauss-hermite": qnwgausshermite}


def nodes_weights(vcv, rule="monomial1"):
    '''This function returns the integration nodes and weights of the
       chosen rule for shocks with covariance vcv'''

    if rule not in rules:
        raise ValueError("unknown quadrature rule: {}".format(rule))

    return rules[rule](np.asarray(vcv, dtype=float))
