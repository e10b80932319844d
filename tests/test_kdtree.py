import sys

import numpy as np
import pytest

from ponca.kdtree import (
    IndexSquaredDistance,
    KdTreeLayout,
    KdTreeNode,
    KNearestIndexQuery,
    RangeIndexQuery,
)


def build_tree(points, sampling, leaf_size=4):
    points = np.asarray(points, dtype=float)
    indices = list(sampling)
    nodes = [None]

    def build(node_id, start, end):
        if end - start <= leaf_size:
            nodes[node_id] = KdTreeNode(leaf=True, start=start, size=end - start)
            return
        block = points[indices[start:end]]
        dim = int(np.argmax(block.max(axis=0) - block.min(axis=0)))
        indices[start:end] = sorted(indices[start:end], key=lambda i: points[i][dim])
        mid = (start + end) // 2
        split = float(points[indices[mid]][dim])
        first = len(nodes)
        nodes.extend([None, None])
        nodes[node_id] = KdTreeNode(split_value=split, first_child_id=first, dim=dim)
        build(first, start, mid)
        build(first + 1, mid, end)

    build(0, 0, len(indices))
    return KdTreeLayout(nodes, points, indices)


def make_cloud(dim, n=100, seed=0):
    rng = np.random.default_rng(seed)
    points = rng.uniform(-1.0, 1.0, size=(n, dim))
    sampling = rng.choice(n, n // 2, replace=False)
    return rng, points, sampling


@pytest.mark.parametrize("dim", [3, 4])
def test_range_index_matches_brute_force(dim):
    rng, points, sampling = make_cloud(dim)
    tree = build_tree(points, sampling)
    for i in range(len(points)):
        r = rng.uniform(0.0, 0.5)
        results = list(RangeIndexQuery(tree, r, i))
        assert len(results) == len(set(results))
        expected = {
            int(j)
            for j in sampling
            if j != i and float(np.sum((points[i] - points[j]) ** 2)) < r * r
        }
        assert set(results) == expected


@pytest.mark.parametrize("dim", [3, 4])
def test_k_nearest_matches_sorted_distances(dim):
    rng, points, sampling = make_cloud(dim, seed=5)
    tree = build_tree(points, sampling)
    k = 6
    for i in range(len(points)):
        results = list(KNearestIndexQuery(tree, k, i))
        assert len(results) == k
        assert i not in results
        dists = [float(np.sum((points[i] - points[j]) ** 2)) for j in results]
        assert dists == sorted(dists)
        others = sorted(
            float(np.sum((points[i] - points[j]) ** 2)) for j in sampling if j != i
        )
        assert np.allclose(dists, others[:k])


def line_tree():
    points = [[0.0], [1.0], [2.0], [3.0], [4.0]]
    nodes = [
        KdTreeNode(split_value=2.0, first_child_id=1, dim=0),
        KdTreeNode(leaf=True, start=0, size=2),
        KdTreeNode(leaf=True, start=2, size=3),
    ]
    return KdTreeLayout(nodes, points, [0, 1, 2, 3, 4])


def test_range_on_small_tree():
    tree = line_tree()
    assert sorted(RangeIndexQuery(tree, 1.5, 2)) == [1, 3]
    assert sorted(RangeIndexQuery(tree, 1.0, 2)) == []
    assert sorted(RangeIndexQuery(tree, 10.0, 0)) == [1, 2, 3, 4]


def test_k_nearest_on_small_tree():
    tree = line_tree()
    assert list(KNearestIndexQuery(tree, 2, 0)) == [1, 2]
    assert list(KNearestIndexQuery(tree, 1, 4)) == [3]
    assert list(KNearestIndexQuery(tree, 10, 4)) == [3, 2, 1, 0]
    assert list(KNearestIndexQuery(tree, 0, 4)) == []


def test_query_is_repeatable():
    tree = line_tree()
    query = RangeIndexQuery(tree, 2.5, 2)
    first = sorted(query)
    second = sorted(query)
    assert first == [0, 1, 3, 4]
    assert second == [0, 1, 3, 4]


def test_empty_tree_yields_nothing():
    tree = KdTreeLayout([], [[0.0, 0.0]], [])
    assert list(RangeIndexQuery(tree, 1.0, 0)) == []
    assert list(KNearestIndexQuery(tree, 3, 0)) == []


def test_out_of_range_query_index_raises():
    tree = line_tree()
    with pytest.raises(IndexError):
        list(RangeIndexQuery(tree, 1.0, 5))
    with pytest.raises(IndexError):
        list(KNearestIndexQuery(tree, 1, -1))


def test_negative_k_raises():
    with pytest.raises(ValueError):
        KNearestIndexQuery(line_tree(), -1, 0)


def test_layout_rejects_bad_input():
    with pytest.raises(ValueError):
        KdTreeLayout([], [0.0, 1.0], [])
    with pytest.raises(ValueError):
        KdTreeLayout([], [[0.0]], [3])


def test_index_squared_distance_defaults_and_order():
    default = IndexSquaredDistance()
    assert default.index == -1
    assert default.squared_distance == sys.float_info.max
    near = IndexSquaredDistance(5, 1.0)
    far = IndexSquaredDistance(2, 3.0)
    assert near < far
    assert not far < near
    assert sorted([far, default, near]) == [near, far, default]
    assert KdTreeLayout([], [[0.0], [1.0]], []).point_count == 2