[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ponca"
version = "0.1.0"
description = "Point cloud analysis: local plane, sphere and Monge patch fitting, and neighbour queries on a kd-tree layout"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "point cloud",
    "surface fitting",
    "curvature",
    "kd-tree",
    "geometry",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ponca"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
