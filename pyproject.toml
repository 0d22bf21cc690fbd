[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lc2k"
version = "0.1.0"
description = "Assembler and cache-aware simulator for the LC2K instruction set"
requires-python = ">=3.10"
dependencies = []
keywords = ["lc2k", "assembler", "simulator", "cache", "emulator"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: Software Development :: Assemblers",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
lc2k-asm = "lc2k.assembler:main"
lc2k-sim = "lc2k.simulator:main"

[tool.hatch.build.targets.wheel]
packages = ["lc2k"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
