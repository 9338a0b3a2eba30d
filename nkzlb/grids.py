import numpy as np
from collections import namedtuple
from scipy.stats import qmc
from interpolation.complete_poly import complete_polynomial, n_complete

from .quadrature import nodes_weights


Stage = namedtuple("Stage", ["degree", "basis"])

Grid = namedtuple("Grid",
                  ["ηR", "ηa", "ηL", "ηu", "ηB", "ηG",       # Current shocks, shape (m,)
                   "R", "δ",                                 # Current endogenous states, shape (m,)
                   "X",                                      # Stacked state, shape (m, 8)
                   "stages",                                 # Stage per degree, in solving order
                   "ε_nodes", "ω_nodes",                     # Integration nodes and weights
                   "ηR1", "ηa1", "ηL1", "ηu1", "ηB1", "ηG1"])  # Future shocks, shape (m, n_nodes)


def n_terms(degree, dimension=8):
    '''Number of terms of a complete polynomial of the given degree'''

    return n_complete(dimension, degree)


def complete_basis(points, degree):
    '''This function evaluates the complete polynomial basis of the given
       degree at every row of points and returns an (n x n_terms) matrix'''

    z = np.ascontiguousarray(np.atleast_2d(points).T, dtype=float)

    return complete_polynomial(z, degree).T


def sample_points(count, lower, upper, kind="sobol", rng=None):
    '''This function draws count points in the hyperrectangle [lower, upper],
       either from a scrambled Sobol sequence or uniformly at random'''

    rng = np.random.default_rng(rng)
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)

    if kind == "sobol":
        # Draw a power of two points to keep the balance properties
        engine = qmc.Sobol(d=lower.size, scramble=True, seed=rng)
        s = engine.random_base2(int(np.ceil(np.log2(count))))[:count]
    elif kind == "random":
        s = rng.random((count, lower.size))
    else:
        raise ValueError("unknown sampling kind: {}".format(kind))

    # Degenerate dimensions (lower == upper) collapse to a single value
    return lower + (upper - lower) * s


def state_bounds(model):
    '''Bounds of the sampled state, ordered as six shocks, R and δ'''

    η_max = 2 * model.σ / np.sqrt(1 - model.ρ**2)

    lower = np.concatenate([-η_max, [1.0, 0.95]])
    upper = np.concatenate([η_max, [1.05, 1.0]])

    return lower, upper


def make_grid(model, rng=None, rule="monomial1"):
    '''This function builds the grid of current states, the basis matrices
       used by every solving stage, the integration nodes and the future
       values of the shocks at every node'''

    lower, upper = state_bounds(model)
    s = sample_points(model.m, lower, upper, model.kind, rng)

    η = s[:, :6]
    R = s[:, 6].copy()
    δ = s[:, 7].copy()

    X = np.column_stack([np.log(R), np.log(δ), η])

    # Degree one always comes first since it seeds the target degree
    degrees = [1] if model.deg == 1 else [1, model.deg]
    stages = tuple(Stage(d, complete_basis(X, d)) for d in degrees)

    ε_nodes, ω_nodes = nodes_weights(model.vcov, rule)

    # AR1 update with the integration node as the innovation
    ρ = model.ρ
    η1 = [ρ[k] * η[:, k][:, None] + ε_nodes[None, :, k] for k in range(6)]

    η_cols = [η[:, k].copy() for k in range(6)]

    return Grid(*η_cols, R, δ, X, stages, ε_nodes, ω_nodes, *η1)
