[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tamaemu"
version = "0.1.0"
description = "A hardware-agnostic emulator of the E0C6S46 4-bit microcontroller found in first-generation virtual pets"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "e0c6s46", "virtual pet", "4-bit", "microcontroller"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tamaemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
