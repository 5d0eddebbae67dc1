[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ewwscope"
version = "0.1.0"
description = "A graph of variable scopes with inheritance, provided attributes and change listeners"
requires-python = ">=3.10"
dependencies = []
keywords = ["scope", "variables", "reactive", "state", "graph", "listeners"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ewwscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
