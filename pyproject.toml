[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fatfrag"
version = "0.1.0"
description = "Inspect FAT16 partitions and report file and free-space fragmentation"
requires-python = ">=3.10"
dependencies = []
keywords = ["fat16", "filesystem", "fragmentation", "disk", "report"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fatfrag = "fatfrag.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["fatfrag"]

[tool.pytest.ini_options]
addopts = "-ra"
