[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "portpick"
version = "1.6.9"
description = "Suggest free TCP ports that avoid well-known services and ports already in use"
requires-python = ">=3.10"
keywords = ["ports", "networking", "tcp", "docker", "services", "rustscan"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Utilities",
]
dependencies = [
    "requests",
    "termcolor",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
portpick = "portpick.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["portpick"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
