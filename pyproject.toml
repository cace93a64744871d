[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chvalues"
version = "0.1.0"
description = "Client-side column values for a columnar SQL database: owned and borrowed cells, SQL types, conversions and formatting."
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "columnar", "sql", "values", "types", "decimal", "datetime64"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Front-Ends",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["chvalues"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
