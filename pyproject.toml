[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "canisterkit"
version = "0.1.0"
description = "Certified Merkle maps, hash trees and ledger account types for canister development"
requires-python = ">=3.10"
dependencies = [
    "cbor2",
]
keywords = ["merkle", "hash-tree", "red-black-tree", "certification", "ledger", "account-identifier"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "cbor2",
]

[tool.hatch.build.targets.wheel]
packages = ["canisterkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
