[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "beefykit"
version = "0.1.0"
description = "BEEFY bridge utilities: binary Merkle trees, authority key handling, vote rounds and gossip validation"
requires-python = ">=3.10"
keywords = ["beefy", "merkle", "merkle-proof", "keccak", "secp256k1", "ethereum", "bridge", "scale"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Environment :: Console",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pycryptodome",
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
beefykit = "beefykit.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["beefykit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
