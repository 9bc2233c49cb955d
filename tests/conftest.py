# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""Shared fixtures for mapweaver tests."""

import random

import pytest

from mapweaver.model import TreeModel


def random_tree(n, seed=0, max_children=4):
    """Random tree of ``n`` nodes with varied sizes, built breadth-first."""
    rng = random.Random(seed)
    tree = TreeModel()
    tree.add_root('n0', width=rng.uniform(20, 200), height=rng.uniform(20, 80))
    open_ids = ['n0']
    for i in range(1, n):
        parent = rng.choice(open_ids)
        tree.add_child(parent, f'n{i}', width=rng.uniform(20, 200), height=rng.uniform(20, 80))
        open_ids.append(f'n{i}')
        if len(tree[parent].children) >= max_children:
            open_ids.remove(parent)
    return tree


@pytest.fixture
def make_random_tree():
    return random_tree


@pytest.fixture
def small_tree():
    """root -> a (a1, a2), b, c"""
    tree = TreeModel()
    tree.add_root('root', label='Root')
    tree.add_child('root', 'a', label='A')
    tree.add_child('root', 'b', label='B')
    tree.add_child('root', 'c', label='C')
    tree.add_child('a', 'a1')
    tree.add_child('a', 'a2')
    return tree


@pytest.fixture
def deep_tree():
    """root -> a -> a1 -> a2, plus root -> b (max depth 3)."""
    tree = TreeModel()
    tree.add_root('root')
    tree.add_child('root', 'a')
    tree.add_child('a', 'a1')
    tree.add_child('a1', 'a2')
    tree.add_child('root', 'b')
    return tree
