# ponca

Local surface analysis for point clouds, built on NumPy.

The package fits simple primitives to the weighted neighbourhood of an
evaluation point and answers neighbour queries on a kd-tree layout:

- `ponca.plane` — the `Plane` primitive (`potential`, `project`,
  `primitive_gradient`), the `Point` sample type (position and optional
  normal) and the `FitResult` states (`STABLE`, `UNSTABLE`, `UNDEFINED`,
  `NEED_OTHER_PASS`).
- `ponca.plane_fits` — `MeanPlaneFit` (weighted mean position and mean
  normal of oriented samples), `CovariancePlaneFit` (smallest eigenvector of
  the weighted covariance, with `surface_variation`,
  `world_to_tangent_plane` and `tangent_plane_to_world`) and
  `CovariancePlaneDer` (scale and space derivatives of the fitted normal and
  offset, 3D only).
- `ponca.monge_patch` — `MongePatch`, a two-pass fit of a height-field
  quadric `h = f(u, v)` over the tangent plane, with `k_mean` and
  `gaussian_curvature` estimates (3D only).
- `ponca.unoriented_sphere` — `UnorientedSphereFit`, an algebraic sphere
  fit that ignores the sign of the normals, with `center` and `radius`.
- `ponca.kdtree` — `KdTreeLayout` (nodes, points and index array of a built
  tree) with `KNearestIndexQuery` and `RangeIndexQuery`.
- `ponca.containers` — `LimitedPriorityQueue`, a sorted queue of fixed
  capacity.
- `ponca.colormap` — `get_color`, a blue-white-red colour map returning a
  `Color`.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Fitting a plane

A weight is any callable `weight(q, point)` returning a non-negative
number, where `q` is the neighbour position relative to the evaluation
point. Neighbours with a weight of zero are ignored.

```python
import numpy as np
from ponca.plane import FitResult, Point
from ponca.plane_fits import CovariancePlaneFit

def weight(q, point, scale=0.5):
    return max(0.0, 1.0 - float(q @ q) / scale**2)

rng = np.random.default_rng(0)
samples = [Point(np.array([x, y, 0.0])) for x, y in rng.uniform(-1, 1, (200, 2))]

fit = CovariancePlaneFit(weight, dim=3)
fit.init(np.zeros(3))
if fit.compute(samples) == FitResult.STABLE:
    print(fit.primitive_gradient())   # close to (0, 0, ±1)
    print(fit.surface_variation())    # close to 0 for a flat patch
```

Every fit follows the same life cycle: `init(eval_pos)`, then
`add_neighbor(point)` for each sample, then `finalize()`, which returns a
`FitResult`. `compute(points)` does the adding and finalizing in one call.

`CovariancePlaneFit.finalize()` needs at least three weighted neighbours and
`MeanPlaneFit` needs points with normals; otherwise the result is
`UNDEFINED`. `UnorientedSphereFit` is `UNSTABLE` with fewer than six
neighbours.

`MongePatch.finalize()` returns `FitResult.NEED_OTHER_PASS` after the plane
pass; the neighbours are then fed again and finalized a second time to
obtain the quadric. `MongePatch.compute(points)` runs both passes.

`CovariancePlaneDer` takes a weight object that, besides being callable,
provides `scaledw(q, point)` and/or `spacedw(q, point)` for the derivative
kinds enabled with `scale_der` and `space_der`. The results are exposed as
`d_normal`, `d_dist` and `d_cog`.

## Neighbour queries

`KdTreeLayout` holds an already built tree: a sequence of `KdTreeNode`
(node 0 is the root; inner nodes split along `dim` at `split_value` with
children at `first_child_id` and `first_child_id + 1`; leaves cover
`indices[start:start + size]`), the point array and the index array.

```python
import numpy as np
from ponca.kdtree import KdTreeLayout, KdTreeNode, KNearestIndexQuery, RangeIndexQuery

points = np.array([[0.0, 0.0], [0.1, 0.0], [1.0, 1.0], [0.9, 1.0]])
nodes = [
    KdTreeNode(split_value=0.5, first_child_id=1, dim=0),
    KdTreeNode(leaf=True, start=0, size=2),
    KdTreeNode(leaf=True, start=2, size=2),
]
tree = KdTreeLayout(nodes, points, [0, 1, 2, 3])

list(RangeIndexQuery(tree, 0.25, 0))     # [1]
list(KNearestIndexQuery(tree, 2, 0))     # [1, 3], closest first
```

Both queries start from the point stored at the given index and never
return that index itself. Range queries return the indices whose squared
distance is strictly below the squared radius.

## Bounded priority queue

```python
from ponca.containers import LimitedPriorityQueue

queue = LimitedPriorityQueue(3, [5, 1, 9, 3])
list(queue)      # [1, 3, 5]
queue.push(0)    # True, 5 is dropped
queue.push(7)    # False, the queue is full and 7 ranks below everything kept
```

`key` and `reverse` change the ordering; `top`, `bottom`, `pop`, `reserve`
and `clear` work on the ordered contents.

## Colour map

```python
from ponca.colormap import get_color

get_color(0.25, -0.5, 0.5)   # Color(r=1.0, g=0.5, b=0.5)
```

A value of exactly zero maps to white; values outside the range are clamped.

## What the package does not do

- It does not build kd-trees: `KdTreeLayout` takes nodes, points and
  indices that are already laid out.
- It has no point-cloud file reading, normal estimation, viewer or command
  line tool; samples are passed in as `Point` objects and weights as
  Python callables.