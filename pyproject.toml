[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgpwrite"
version = "0.1.0"
description = "Stacked OpenPGP packet writers: partial body lengths, symmetric CFB encryption and integrity-protected data packets"
requires-python = ">=3.10"
keywords = ["openpgp", "pgp", "rfc4880", "encryption", "cfb", "packets"]
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
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pgpwrite"]

[tool.pytest.ini_options]
addopts = "-ra"
