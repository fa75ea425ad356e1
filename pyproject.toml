[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "expectedfutures"
version = "0.1.0"
description = "Chainable futures whose results are completed, errored or cancelled values, with cancellation handles, execution policies and combinators."
requires-python = ">=3.10"
dependencies = []
keywords = ["futures", "promises", "async", "cancellation", "continuations", "expected", "threads"]
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
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["expectedfutures"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
