[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "helmsman"
version = "0.1.0"
description = "Data access layer for a trading journal: repositories over SQLite with optional read-through caching"
requires-python = ">=3.10"
keywords = ["trading journal", "repository", "sqlite", "cache", "dao"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Front-Ends",
]
dependencies = [
    "redis",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["helmsman"]

[tool.pytest.ini_options]
addopts = "-ra"
