import unittest
import numpy as np
from nkzlb.models import nk_jit
from nkzlb.quadrature import nodes_weights, rules, qnwgausshermite


class testQuadrature(unittest.TestCase):
    def setUp(self):
        self.vcov = nk_jit().vcov

    def test_node_counts(self):
        counts = {"monomial1": 12, "monomial2": 73, "gauss-hermite": 729}
        for rule, count in counts.items():
            ε_nodes, ω_nodes = nodes_weights(self.vcov, rule)
            self.assertEqual(ε_nodes.shape, (count, 6))
            self.assertEqual(ω_nodes.shape, (count,))

    def test_moments(self):
        for rule in rules:
            ε_nodes, ω_nodes = nodes_weights(self.vcov, rule)
            self.assertAlmostEqual(ω_nodes.sum(), 1.0, places=12)
            np.testing.assert_allclose(ω_nodes @ ε_nodes, np.zeros(6), atol=1e-14)
            np.testing.assert_allclose((ε_nodes * ω_nodes[:, None]).T @ ε_nodes,
                                       self.vcov, atol=1e-12)

    def test_partially_degenerate(self):
        vcov = nk_jit(σηR=0.0, σηB=0.0).vcov
        ε_nodes, ω_nodes = nodes_weights(vcov, "monomial2")
        self.assertFalse(np.any(ε_nodes[:, 0]))
        self.assertFalse(np.any(ε_nodes[:, 4]))
        np.testing.assert_allclose((ε_nodes * ω_nodes[:, None]).T @ ε_nodes, vcov, atol=1e-12)

    def test_degenerate(self):
        for rule in rules:
            ε_nodes, ω_nodes = nodes_weights(np.zeros((6, 6)), rule)
            np.testing.assert_array_equal(ε_nodes, np.zeros((1, 6)))
            np.testing.assert_array_equal(ω_nodes, [1.0])

    def test_non_diagonal(self):
        vcov = np.array([[2.0, 0.5], [0.5, 1.0]]) * 1e-4
        ε_nodes, ω_nodes = nodes_weights(vcov, "monomial1")
        np.testing.assert_allclose((ε_nodes * ω_nodes[:, None]).T @ ε_nodes, vcov, atol=1e-14)

    def test_unknown_rule(self):
        with self.assertRaises(ValueError):
            nodes_weights(self.vcov, "monomial3")

    def test_gauss_hermite(self):
        ε_nodes, ω_nodes = qnwgausshermite(self.vcov, n_per_dim=2)
        self.assertEqual(ε_nodes.shape, (64, 6))

        # Three nodes per dimension integrate the fourth moment exactly
        ε_nodes, ω_nodes = nodes_weights(self.vcov, "gauss-hermite")
        σ = nk_jit().σ
        np.testing.assert_allclose(ω_nodes @ ε_nodes**4, 3 * σ**4, rtol=1e-10)
