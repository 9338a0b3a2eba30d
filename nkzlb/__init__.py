"""
nkzlb: Projection solver for a New Keynesian model with a zero lower bound

A Python package for solving a nonlinear New Keynesian model with Calvo
pricing, six exogenous shocks and an occasionally binding zero lower bound
on the policy rate. The equilibrium functions are approximated with complete
polynomials, fitted by time iteration with monomial integration, and checked
with equilibrium residuals along a long simulation.

Example:
    >>> from nkzlb.models import nk_jit
    >>> from nkzlb.tools import tools
    >>>
    >>> # Initialize model
    >>> model = nk_jit(deg=2, zlb=True)
    >>>
    >>> # Set up solver
    >>> solver = tools(model=model, rng=42)
    >>>
    >>> # Solve, simulate and check accuracy
    >>> coefs, report = solver.compute_solution()
    >>> sim = solver.simulate(coefs)
    >>> resids = solver.residuals(coefs, sim)
    >>> summary = solver.error_summary(resids)
"""

from .models import nk_jit, steady_state, SteadyState
from .tools import tools, ConvergenceError, NonFiniteError

__version__ = "0.1.0"

__all__ = ['nk_jit', 'steady_state', 'SteadyState', 'tools',
           'ConvergenceError', 'NonFiniteError']
