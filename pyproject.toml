[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ptybuf"
version = "0.1.0"
description = "Record a shell session through a pseudo-terminal and write its output to a file on demand"
requires-python = ">=3.10"
dependencies = []
keywords = ["pty", "terminal", "shell", "scrollback", "buffer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ptyb = "ptybuf.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ptybuf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
