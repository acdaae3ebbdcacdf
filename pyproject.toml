[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mdual"
version = "0.1.0"
description = "Multi-query distance-based outlier detection over sliding windows of data streams"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "outlier detection",
    "anomaly detection",
    "data streams",
    "sliding window",
    "distance-based outliers",
    "multi-query",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mdual = "mdual.simulator:main"

[tool.hatch.build.targets.wheel]
packages = ["mdual"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
