[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rnacl"
version = "0.1.0"
description = "Track the output of data pipelines in a ledger and audit changes against an acknowledged baseline"
requires-python = ">=3.10"
dependencies = []
keywords = ["pipeline", "audit", "snapshot", "ledger", "regression"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
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

[project.scripts]
rnacl = "rnacl.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rnacl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
