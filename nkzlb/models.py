import numpy as np
from numba import boolean, float64, int64, types
from numba.experimental import jitclass
from collections import namedtuple


# This class uses numba, therefore we need to specify the data types at the begining
nk_data = [('zlb', boolean),                # Whether the zero lower bound is imposed
           ('γ', float64),                  # Utility function parameter (risk aversion)
           ('β', float64),                  # Discount factor
           ('θ', float64),                  # Utility function parameter (labour disutility)
           ('ε', float64),                  # Elasticity in the Dixit-Stiglitz aggregator
           ('φ_y', float64),                # Taylor rule response to the output gap
           ('φ_π', float64),                # Taylor rule response to inflation
           ('μ', float64),                  # Taylor rule inertia
           ('Θ', float64),                  # Share of non-reoptimizing firms (Calvo)
           ('πstar', float64),              # Target (gross) inflation rate
           ('gbar', float64),               # Steady-state share of gov. spending in output
           ('ρηR', float64),                # Persistence of the monetary shock
           ('ρηa', float64),                # Persistence of the productivity shock
           ('ρηL', float64),                # Persistence of the labour supply shock
           ('ρηu', float64),                # Persistence of the preference shock
           ('ρηB', float64),                # Persistence of the bond premium shock
           ('ρηG', float64),                # Persistence of the gov. spending shock
           ('σηR', float64),                # Conditional volatility of the monetary shock
           ('σηa', float64),
           ('σηL', float64),
           ('σηu', float64),
           ('σηB', float64),
           ('σηG', float64),
           ('deg', int64),                  # Degree of the target polynomial
           ('damp', float64),               # Damping in the coefficient update
           ('tol', float64),                # Tolerance criterion
           ('m', int64),                    # Number of grid points
           ('kind', types.unicode_type)]    # Sampling scheme, "sobol" or "random"

@jitclass(nk_data)
class nk_jit:
    '''New Keynesian model with Calvo pricing, six AR1 shocks and an
       occasionally binding zero lower bound on the policy rate'''

    def __init__(self,
                 zlb=True,
                 γ=1.0,
                 β=0.99,
                 θ=2.09,
                 ε=4.45,
                 φ_y=0.07,
                 φ_π=2.21,
                 μ=0.82,
                 Θ=0.83,
                 πstar=1.0,
                 gbar=0.23,
                 ρηR=0.0,
                 ρηa=0.95,
                 ρηL=0.25,
                 ρηu=0.92,
                 ρηB=0.0,
                 ρηG=0.95,
                 σηR=0.0028,
                 σηa=0.0045,
                 σηL=0.0500,
                 σηu=0.0054,
                 σηB=0.0010,
                 σηG=0.0038,
                 deg=2,
                 damp=0.1,
                 tol=1e-7,
                 m=200,
                 kind="sobol"):

        self.zlb = zlb
        self.γ, self.β, self.θ, self.ε = γ, β, θ, ε
        self.φ_y, self.φ_π, self.μ = φ_y, φ_π, μ
        self.Θ, self.πstar, self.gbar = Θ, πstar, gbar

        self.ρηR, self.ρηa, self.ρηL = ρηR, ρηa, ρηL
        self.ρηu, self.ρηB, self.ρηG = ρηu, ρηB, ρηG
        self.σηR, self.σηa, self.σηL = σηR, σηa, σηL
        self.σηu, self.σηB, self.σηG = σηu, σηB, σηG

        self.deg, self.damp, self.tol = deg, damp, tol
        self.m, self.kind = m, kind

        self.check()

    def check(self):
        '''This function rejects parameterizations the algorithm cannot
           work with. It runs again whenever a solver takes the model'''

        ρ, σ = self.ρ, self.σ
        for i in range(6):
            if σ[i] < 0.0:
                raise ValueError("shock standard deviations must be non-negative")
            if abs(ρ[i]) >= 1.0:
                raise ValueError("shock autocorrelations must lie in (-1, 1)")
        if self.damp <= 0.0 or self.damp > 1.0:
            raise ValueError("damping must lie in (0, 1]")
        if self.deg < 1 or self.deg > 5:
            raise ValueError("polynomial degree must lie in 1..5")
        if self.m < 1:
            raise ValueError("grid size must be positive")
        if self.tol <= 0.0:
            raise ValueError("tolerance must be positive")
        if self.kind != "sobol" and self.kind != "random":
            raise ValueError("grid kind must be 'sobol' or 'random'")

    @property
    def ρ(self):
        '''Persistence factors, ordered (R, a, L, u, B, G)'''

        return np.array([self.ρηR, self.ρηa, self.ρηL, self.ρηu, self.ρηB, self.ρηG])

    @property
    def σ(self):
        '''Conditional volatilities, same order as ρ'''

        return np.array([self.σηR, self.σηa, self.σηL, self.σηu, self.σηB, self.σηG])

    @property
    def vcov(self):
        '''Covariance matrix of the six shock innovations'''

        return np.diag(self.σ**2)

    def step(self, S, F, C, δ0, R0, ηG, ηa, ηL, ηR):
        '''This function maps the controls S, F, C and the current state into
           inflation, next period price dispersion, output, labour, potential
           output and next period policy rate'''

        Θ, ε, gbar, θ, γ = self.Θ, self.ε, self.gbar, self.θ, self.γ
        β, μ, φ_π, φ_y = self.β, self.μ, self.φ_π, self.φ_y
        πstar = self.πstar

        # Inflation from the optimal reset price condition
        π0 = ((1 - (1 - Θ) * (S / F)**(1 - ε)) / Θ)**(1 / (ε - 1))

        # Calvo price dispersion recursion
        δ1 = ((1 - Θ) * ((1 - Θ * π0**(ε - 1)) / (1 - Θ))**(ε / (ε - 1)) + Θ * π0**ε / δ0)**(-1)

        # Market clearing
        Y0 = C / (1 - gbar / np.exp(ηG))

        # Labour needed to produce Y0 under dispersion δ1
        L0 = Y0 / np.exp(ηa) / δ1

        # Flexible price (potential) output
        Yn0 = (np.exp(ηa)**(1 + θ) * (1 - gbar / np.exp(ηG))**(-γ) / np.exp(ηL))**(1 / (θ + γ))

        # Taylor rule with inertia
        R1 = πstar / β * (R0 * β / πstar)**μ * ((π0 / πstar)**φ_π * (Y0 / Yn0)**φ_y)**(1 - μ) * np.exp(ηR)

        if self.zlb:
            R1 = np.maximum(R1, 1.0)

        return π0, δ1, Y0, L0, Yn0, R1


SteadyState = namedtuple("SteadyState",
                         ["Yn", "Y", "π", "δ", "L", "C", "F", "S", "R", "w"])


def steady_state(model):
    '''This function solves for the deterministic steady state of the model
       in closed form'''

    γ, β, θ = model.γ, model.β, model.θ
    ε, Θ, gbar = model.ε, model.Θ, model.gbar

    Yn = (1 - gbar)**(-γ / (θ + γ))
    Y = Yn
    π = 1.0
    δ = 1.0
    L = Y / δ
    C = (1 - gbar) * Y
    F = C**(-γ) * Y / (1 - β * Θ * π**(ε - 1))
    S = L**θ * Y / (1 - β * Θ * π**ε)
    R = π / β
    w = L**θ * C**γ

    return SteadyState(Yn, Y, π, δ, L, C, F, S, R, w)
