[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shardsim"
version = "0.1.0"
description = "Supervisor-side toolkit for a sharded blockchain emulator: message framing, CLPA account partitioning, rate limiting and performance measurement."
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "sharding", "emulator", "partitioning", "clpa", "simulation"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["shardsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
