import unittest
import numpy as np
from nkzlb.models import nk_jit
from nkzlb.grids import make_grid, sample_points, state_bounds, complete_basis, n_terms


class testBasis(unittest.TestCase):
    def test_n_terms(self):
        self.assertEqual(n_terms(1), 9)
        self.assertEqual(n_terms(2), 45)
        self.assertEqual(n_terms(3), 165)
        self.assertEqual(n_terms(2, dimension=2), 6)

    def test_degree_one_is_affine(self):
        points = np.random.default_rng(0).normal(size=(10, 8))
        basis = complete_basis(points, 1)
        self.assertEqual(basis.shape, (10, 9))
        np.testing.assert_allclose(basis[:, 0], np.ones(10))
        np.testing.assert_allclose(basis[:, 1:], points)

    def test_lower_degree_terms_come_first(self):
        points = np.random.default_rng(1).normal(size=(10, 8))
        np.testing.assert_allclose(complete_basis(points, 2)[:, :9], complete_basis(points, 1))

    def test_single_point(self):
        state = np.arange(8) / 10.0
        self.assertEqual(complete_basis(state, 2).shape, (1, 45))


class testSampling(unittest.TestCase):
    def test_sobol_within_bounds(self):
        lower, upper = np.zeros(8), np.arange(1, 9, dtype=float)
        s = sample_points(200, lower, upper, "sobol", rng=0)
        self.assertEqual(s.shape, (200, 8))
        self.assertTrue(np.all(s >= lower) and np.all(s <= upper))

    def test_random_within_bounds(self):
        lower, upper = -np.ones(8), np.ones(8)
        s = sample_points(50, lower, upper, "random", rng=0)
        self.assertEqual(s.shape, (50, 8))
        self.assertTrue(np.all(np.abs(s) <= 1.0))

    def test_reproducible(self):
        lower, upper = np.zeros(8), np.ones(8)
        np.testing.assert_array_equal(sample_points(30, lower, upper, "sobol", rng=5),
                                      sample_points(30, lower, upper, "sobol", rng=5))

    def test_degenerate_dimension(self):
        lower, upper = np.zeros(3), np.array([0.0, 1.0, 0.0])
        s = sample_points(16, lower, upper, "sobol", rng=0)
        np.testing.assert_array_equal(s[:, 0], np.zeros(16))
        np.testing.assert_array_equal(s[:, 2], np.zeros(16))

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            sample_points(10, np.zeros(8), np.ones(8), "halton")


class testGrid(unittest.TestCase):
    def setUp(self):
        self.model = nk_jit(m=64)
        self.grid = make_grid(self.model, rng=0)

    def test_shapes(self):
        g = self.grid
        self.assertEqual(g.X.shape, (64, 8))
        self.assertEqual([stage.degree for stage in g.stages], [1, 2])
        self.assertEqual(g.stages[0].basis.shape, (64, 9))
        self.assertEqual(g.stages[1].basis.shape, (64, 45))
        self.assertEqual(g.ε_nodes.shape, (12, 6))
        self.assertEqual(g.ηG1.shape, (64, 12))

    def test_state_within_bounds(self):
        g = self.grid
        η_max = 2 * self.model.σ / np.sqrt(1 - self.model.ρ**2)
        η = np.column_stack([g.ηR, g.ηa, g.ηL, g.ηu, g.ηB, g.ηG])
        self.assertTrue(np.all(np.abs(η) <= η_max))
        self.assertTrue(np.all((g.R >= 1.0) & (g.R <= 1.05)))
        self.assertTrue(np.all((g.δ >= 0.95) & (g.δ <= 1.0)))

    def test_stacked_state(self):
        g = self.grid
        np.testing.assert_allclose(g.X[:, 0], np.log(g.R))
        np.testing.assert_allclose(g.X[:, 1], np.log(g.δ))
        np.testing.assert_allclose(g.X[:, 7], g.ηG)

    def test_future_shocks(self):
        g, ρ = self.grid, self.model.ρ
        np.testing.assert_allclose(g.ηa1, ρ[1] * g.ηa[:, None] + g.ε_nodes[None, :, 1])
        np.testing.assert_allclose(g.ηu1, ρ[3] * g.ηu[:, None] + g.ε_nodes[None, :, 3])

    def test_bounds(self):
        lower, upper = state_bounds(self.model)
        np.testing.assert_allclose(lower[6:], [1.0, 0.95])
        np.testing.assert_allclose(upper[6:], [1.05, 1.0])
        np.testing.assert_allclose(lower[:6], -upper[:6])

    def test_degree_one_only(self):
        g = make_grid(nk_jit(m=32, deg=1), rng=0)
        self.assertEqual([stage.degree for stage in g.stages], [1])

    def test_random_kind(self):
        g = make_grid(nk_jit(m=40, kind="random"), rng=1)
        self.assertEqual(g.X.shape, (40, 8))
        self.assertTrue(np.all((g.R >= 1.0) & (g.R <= 1.05)))

    def test_no_volatility(self):
        model = nk_jit(m=32, σηR=0.0, σηa=0.0, σηL=0.0, σηu=0.0, σηB=0.0, σηG=0.0)
        g = make_grid(model, rng=0)
        self.assertFalse(np.any(g.X[:, 2:]))
        self.assertEqual(g.ω_nodes.size, 1)
        self.assertEqual(g.ηR1.shape, (32, 1))
