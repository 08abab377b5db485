[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gbnsim"
version = "1.0.0"
description = "Discrete-event network emulator with a Go-Back-N sender and receiver"
requires-python = ">=3.10"
dependencies = []
keywords = ["go-back-n", "network", "emulator", "simulation", "transport protocol", "arq"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gbnsim = "gbnsim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["gbnsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
