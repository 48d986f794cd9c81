"""
Tests for the exploration engine.

- test_tree.py: ExecutionTree choice observation, pruning, arena reuse
- test_driver.py: ExplorationSession / explore behaviour and error policy
"""
