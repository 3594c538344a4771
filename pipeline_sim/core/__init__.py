"""Simulation core: variates, traversal, Monte Carlo driver and aggregation."""
