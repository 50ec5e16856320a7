[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lintreview"
version = "0.1.0"
description = "Building blocks for reviewing linter results against diffs: unified diff parsing, CI environment detection, diff sources and comment writers."
requires-python = ">=3.10"
dependencies = []
keywords = ["lint", "code review", "diff", "unified diff", "continuous integration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lintreview"]

[tool.pytest.ini_options]
addopts = "-ra"
