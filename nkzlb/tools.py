import time
import numpy as np
import matplotlib.pyplot as plt
from collections import namedtuple

from .models import steady_state
from .grids import make_grid, complete_basis, n_terms
from .quadrature import nodes_weights
from .logger import _log


class ConvergenceError(RuntimeError):
    '''Raised when a solving stage runs past the iteration cap'''

    def __init__(self, degree, iterations, err):
        self.degree = degree
        self.iterations = iterations
        self.err = err
        super().__init__("degree {} stage did not converge in {} iterations "
                         "(err is {:6.7e})".format(degree, iterations, err))


class NonFiniteError(FloatingPointError):
    '''Raised when the time iteration produces non-finite values'''


StageReport = namedtuple("StageReport", ["degree", "iterations", "err", "elapsed"])

Simulation = namedtuple("Simulation",
                        ["ηR", "ηa", "ηL", "ηu", "ηB", "ηG",
                         "δ", "R", "S", "F", "C", "π", "Y", "L", "Yn", "w"])

ErrorSummary = namedtuple("ErrorSummary", ["l1", "max_err", "max_sum", "max_err_eqn"])

equations = ("S recursion", "F recursion", "Euler equation", "reset price",
             "price dispersion", "production", "market clearing",
             "potential output", "Taylor rule")


def convergence_metric(new, old):
    '''Sum over the controls of the mean absolute relative change between
       two iterations'''

    return sum(np.mean(np.abs(1 - n / o)) for n, o in zip(new, old))


class tools:

    def __init__(self,
                 model,                       # Input of a chosen model
                 rng=None,                    # Seed or numpy Generator for grids and shocks
                 capT=10201,                  # Length of the simulation
                 burn=200,                    # Simulated periods dropped from the residuals
                 max_iter=None,               # Iteration cap per stage, None for no cap
                 solve_rule="monomial1",      # Integration rule used to solve
                 accuracy_rule="monomial2"):  # Integration rule used to check accuracy

        if capT < 2:
            raise ValueError("simulation length must be at least 2")
        if burn < 0 or burn >= capT:
            raise ValueError("burn must lie in [0, capT)")

        # Fields of the jitclass stay writable, so settings are checked again
        model.check()

        self.model = model
        self.rng = np.random.default_rng(rng)
        self.capT = capT
        self.burn = burn
        self.max_iter = max_iter
        self.solve_rule = solve_rule
        self.accuracy_rule = accuracy_rule
        self.ss = steady_state(model)
        self.grid = make_grid(model, self.rng, solve_rule)

    @property
    def degree(self):
        '''Degree of the final solving stage'''

        return self.grid.stages[-1].degree

    def init_coefs(self, degree):
        '''Initial guess for the coefficients, the constant term is set to
           the steady state of S, F and C^(-γ)'''

        s = self.ss

        coefs = np.full((n_terms(degree), 3), 1e-5)
        coefs[0, :] = [s.S, s.F, s.C**(-self.model.γ)]

        return coefs

    def seed_coefs(self, stage, previous, e):
        '''This function seeds a higher degree stage by regressing the last
           targets of the previous stage on the previous basis'''

        seed = np.linalg.lstsq(previous.basis, e, rcond=None)[0]

        # Lower degree terms come first in the complete polynomial
        coefs = self.init_coefs(stage.degree)
        coefs[:seed.shape[0], :] = seed

        return coefs

    def controls(self, coefs, basis):
        '''This function evaluates S, F and C given coefficients and a basis
           matrix, the third column approximates C^(-γ)'''

        SFC = basis @ coefs

        return SFC[..., 0], SFC[..., 1], SFC[..., 2]**(-1 / self.model.γ)

    def iterate(self, stage, coefs):
        '''This function runs the time iteration of one stage until the
           convergence criterion falls below the tolerance'''

        p, g = self.model, self.grid
        γ, β, θ, ε, Θ = p.γ, p.β, p.θ, p.ε, p.Θ
        basis, degree = stage.basis, stage.degree

        m = basis.shape[0]
        n_nodes = g.ω_nodes.size

        # Storage space for the future S, F, C at every node
        S1 = np.zeros((m, n_nodes))
        F1 = np.zeros((m, n_nodes))
        C1 = np.zeros((m, n_nodes))

        # Values on the grid from the previous iteration
        S0_old, F0_old, C0_old = np.ones(m), np.ones(m), np.ones(m)

        future_shocks = (g.ηR1, g.ηa1, g.ηL1, g.ηu1, g.ηB1, g.ηG1)

        err = np.inf
        it = 0
        start_time = time.time()

        while err > p.tol:

            if self.max_iter is not None and it >= self.max_iter:
                raise ConvergenceError(degree, it, err)

            it += 1

            # Current choices at t
            S0, F0, C0 = self.controls(coefs, basis)
            π0, δ1, Y0, L0, Yn0, R1 = p.step(S0, F0, C0, g.δ, g.R, g.ηG, g.ηa, g.ηL, g.ηR)

            # Future choices at t+1 in every integration node
            for u in range(n_nodes):
                X1 = np.column_stack([np.log(R1), np.log(δ1)] + [η1[:, u] for η1 in future_shocks])
                S1[:, u], F1[:, u], C1[:, u] = self.controls(coefs, complete_basis(X1, degree))

            π1 = ((1 - (1 - Θ) * (S1 / F1)**(1 - ε)) / Θ)**(1 / (ε - 1))

            # Conditional expectations in the three forward looking equations
            e = np.column_stack([
                np.exp(g.ηu) * np.exp(g.ηL) * L0**θ * Y0 / np.exp(g.ηa) + (β * Θ * π1**ε * S1) @ g.ω_nodes,
                np.exp(g.ηu) * C0**(-γ) * Y0 + (β * Θ * π1**(ε - 1) * F1) @ g.ω_nodes,
                β * np.exp(g.ηB) / np.exp(g.ηu) * R1 * ((np.exp(g.ηu1) * C1**(-γ) / π1) @ g.ω_nodes)])

            if not np.all(np.isfinite(e)):
                raise NonFiniteError("non-finite expectations in iteration {} of the "
                                     "degree {} stage".format(it, degree))

            # Fit the new coefficients and update with damping
            coefs_hat = np.linalg.lstsq(basis, e, rcond=None)[0]
            coefs = p.damp * coefs_hat + (1 - p.damp) * coefs

            # Unit free distance between the values on the grid of two iterations
            err = convergence_metric((S0, F0, C0), (S0_old, F0_old, C0_old))

            if not np.isfinite(err):
                raise NonFiniteError("non-finite convergence criterion in iteration {} of "
                                     "the degree {} stage".format(it, degree))

            S0_old, F0_old, C0_old = S0, F0, C0

            if it % 20 == 0:
                _log.debug("On iteration {:d} err is {:6.7e}".format(it, err))

        elapsed = time.time() - start_time
        _log.info("Degree {} converged in {} iterations ({:.2f} seconds)".format(degree, it, elapsed))

        return coefs, e, StageReport(degree, it, err, elapsed)

    def compute_solution(self):
        '''This function solves for the coefficients of S, F and C^(-γ),
           stage by stage with increasing polynomial degree'''

        report = []
        previous, e = None, None

        for stage in self.grid.stages:

            if previous is None:
                coefs = self.init_coefs(stage.degree)
            else:
                coefs = self.seed_coefs(stage, previous, e)

            coefs, e, stage_report = self.iterate(stage, coefs)

            report.append(stage_report)
            previous = stage

        return coefs, report

    def draw_innovations(self):
        '''Standard normal innovations for a simulation of length capT'''

        return self.rng.standard_normal((self.capT - 1, 6))

    def simulate(self, coefs, rands=None):
        '''This function simulates a time series of every model variable
           given the solved coefficients'''

        p, capT = self.model, self.capT
        γ, θ, ρ, σ = p.γ, p.θ, p.ρ, p.σ

        if rands is None:
            rands = self.draw_innovations()

        rands = np.asarray(rands, dtype=float)
        if rands.shape != (capT - 1, 6):
            raise ValueError("innovations must have shape {}".format((capT - 1, 6)))

        start_time = time.time()

        # Shocks start at zero and follow independent AR1 processes
        η = np.zeros((capT, 6))
        for t in range(capT - 1):
            η[t + 1] = ρ * η[t] + σ * rands[t]

        ηR, ηa, ηL, ηu, ηB, ηG = [η[:, k].copy() for k in range(6)]

        # Storage space, δ and R start at one
        δ = np.ones(capT + 1)
        R = np.ones(capT + 1)
        S, F, C = np.ones(capT), np.ones(capT), np.ones(capT)
        π, Y, L = np.ones(capT), np.ones(capT), np.ones(capT)
        Yn, w = np.ones(capT), np.ones(capT)

        degree = self.degree

        for t in range(capT):

            state = np.array([np.log(R[t]), np.log(δ[t]), ηR[t], ηa[t], ηL[t], ηu[t], ηB[t], ηG[t]])
            S_t, F_t, C_t = self.controls(coefs, complete_basis(state, degree))
            S[t], F[t], C[t] = S_t[0], F_t[0], C_t[0]

            π[t], δ[t + 1], Y[t], L[t], Yn[t], R[t + 1] = p.step(
                S[t], F[t], C[t], δ[t], R[t], ηG[t], ηa[t], ηL[t], ηR[t]
            )

            # Real wage
            w[t] = np.exp(ηL[t]) * L[t]**θ * C[t]**γ

        _log.info("Simulated {} periods ({:.2f} seconds)".format(capT, time.time() - start_time))

        return Simulation(ηR, ηa, ηL, ηu, ηB, ηG, δ, R, S, F, C, π, Y, L, Yn, w)

    def residuals(self, coefs, sim, burn=None):
        '''This function computes the residuals of the nine equilibrium
           conditions along a simulated path and drops the burn-in periods'''

        p = self.model
        γ, β, θ, ε, Θ = p.γ, p.β, p.θ, p.ε, p.Θ
        μ, φ_π, φ_y, πstar, gbar = p.μ, p.φ_π, p.φ_y, p.πstar, p.gbar
        ρ = p.ρ

        capT = len(sim.w)
        burn = self.burn if burn is None else burn
        if burn < 0 or burn >= capT:
            raise ValueError("burn must lie in [0, {})".format(capT))

        start_time = time.time()

        # A more accurate rule than the one used to solve
        ε_nodes, ω_nodes = nodes_weights(p.vcov, self.accuracy_rule)
        n_nodes = ω_nodes.size
        degree = self.degree

        resids = np.zeros((9, capT))

        for t in range(capT):

            # Shocks at t
            η0 = np.array([sim.ηR[t], sim.ηa[t], sim.ηL[t], sim.ηu[t], sim.ηB[t], sim.ηG[t]])
            ηR0, ηa0, ηL0, ηu0, ηB0, ηG0 = η0

            # R and δ enter the period from t-1, R1 and δ1 are chosen at t
            R0, δ0 = sim.R[t], sim.δ[t]
            R1, δ1 = sim.R[t + 1], sim.δ[t + 1]

            L0, Y0, Yn0, π0 = sim.L[t], sim.Y[t], sim.Yn[t], sim.π[t]
            S0, F0, C0 = sim.S[t], sim.F[t], sim.C[t]

            # Future states in every node, the nodes already include the volatilities
            η1 = ρ * η0 + ε_nodes
            X1 = np.column_stack([np.full(n_nodes, np.log(R1)), np.full(n_nodes, np.log(δ1)), η1])

            S1, F1, C1 = self.controls(coefs, complete_basis(X1, degree))
            π1 = ((1 - (1 - Θ) * (S1 / F1)**(1 - ε)) / Θ)**(1 / (ε - 1))
            ηu1 = η1[:, 3]

            resids[0, t] = 1 - (ω_nodes @ (np.exp(ηu0) * np.exp(ηL0) * L0**θ * Y0 / np.exp(ηa0)
                                           + β * Θ * π1**ε * S1)) / S0
            resids[1, t] = 1 - (ω_nodes @ (np.exp(ηu0) * C0**(-γ) * Y0
                                           + β * Θ * π1**(ε - 1) * F1)) / F0
            resids[2, t] = 1 - (ω_nodes @ (β * np.exp(ηB0) / np.exp(ηu0) * R1 * np.exp(ηu1)
                                           * C1**(-γ) / π1)) / C0**(-γ)

            resids[3, t] = 1 - ((1 - Θ * π0**(ε - 1)) / (1 - Θ))**(1 / (1 - ε)) * F0 / S0
            resids[4, t] = 1 - ((1 - Θ) * ((1 - Θ * π0**(ε - 1)) / (1 - Θ))**(ε / (ε - 1))
                                + Θ * π0**ε / δ0)**(-1) / δ1
            resids[5, t] = 1 - np.exp(ηa0) * L0 * δ1 / Y0
            resids[6, t] = 1 - (1 - gbar / np.exp(ηG0)) * Y0 / C0
            resids[7, t] = 1 - (np.exp(ηa0)**(1 + θ) * (1 - gbar / np.exp(ηG0))**(-γ)
                                / np.exp(ηL0))**(1 / (θ + γ)) / Yn0
            resids[8, t] = 1 - (πstar / β * (R0 * β / πstar)**μ
                                * ((π0 / πstar)**φ_π * (Y0 / Yn0)**φ_y)**(1 - μ)
                                * np.exp(ηR0)) / R1

            # The Taylor rule is inactive while the zero lower bound binds
            if p.zlb and R1 <= 1:
                resids[8, t] = 0.0

        _log.info("Computed residuals ({:.2f} seconds)".format(time.time() - start_time))

        return resids[:, burn:]

    def error_summary(self, resids):
        '''This function summarizes the residuals in log10 units'''

        abs_resids = np.abs(resids)
        max_eqn = abs_resids.max(axis=1)

        summary = ErrorSummary(np.log10(abs_resids.mean() + 1e-16),
                               np.log10(abs_resids.max() + 1e-16),
                               np.log10(max_eqn.sum() + 1e-16),
                               np.log10(max_eqn + 1e-16))

        _log.info("APPROXIMATION ERRORS (log10):")
        _log.info("\ta) mean error in the model equations: {:0.3f}".format(summary.l1))
        _log.info("\tb) max error in the model equations: {:0.3f}".format(summary.max_err))
        _log.info("\tc) sum of max errors by equation: {:0.3f}".format(summary.max_sum))
        for name, value in zip(equations, summary.max_err_eqn):
            _log.info("\t   {:<18s}{:0.3f}".format(name, value))

        return summary

    def run(self):
        '''This function solves and simulates the model, then checks the
           accuracy of the solution'''

        coefs, report = self.compute_solution()
        sim = self.simulate(coefs)
        resids = self.residuals(coefs, sim)
        summary = self.error_summary(resids)

        _log.info("Solver time (in seconds): {:.2f}".format(sum(r.elapsed for r in report)))

        return coefs, sim, resids, summary

    def plot_simulation(self, sim, periods=100):
        '''This function plots the first simulated periods of the main
           model variables'''

        # Period zero is the initial condition
        periods = min(periods, len(sim.w) - 1)
        t = np.arange(1, periods + 1)

        fig, ax = plt.subplots(2, 2, figsize=(10, 8))

        ax[0, 0].plot(t, sim.S[t], label="S")
        ax[0, 0].plot(t, sim.F[t], label="F")
        ax[0, 0].set_title("S and F")
        ax[0, 0].legend()

        ax[0, 1].plot(t, sim.Y[t], label="Y")
        ax[0, 1].plot(t, sim.Yn[t], label="Yn")
        ax[0, 1].set_title("Output and natural output")
        ax[0, 1].legend()

        ax[1, 0].plot(t, sim.C[t], label="C")
        ax[1, 0].plot(t, sim.L[t], label="L")
        ax[1, 0].set_title("Consumption and labour")
        ax[1, 0].legend()

        ax[1, 1].plot(t, sim.δ[t], label="δ")
        ax[1, 1].plot(t, sim.R[t], label="R")
        ax[1, 1].plot(t, sim.π[t], label="π")
        ax[1, 1].set_title("Distortion, interest rate and inflation")
        ax[1, 1].legend()

        plt.show()

        return fig

    def plot_errors_dist(self, resids):
        '''This function plots the distribution of the residuals'''

        error_array = np.log10(np.abs(resids[np.nonzero(resids)]))
        bins = 50
        fig, ax = plt.subplots(figsize=(8, 5))
        ax.set_title('Error Distribution')
        ax.set_xlabel(r'$\log_{10}|\epsilon|$')
        ax.hist(error_array, bins, color='green', alpha=0.5, edgecolor='black')
        ax.grid(True)
        plt.show()

        return fig
