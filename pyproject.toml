[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "reactornet"
version = "0.1.0"
description = "A multi-reactor TCP server library: one selectors-based event loop per thread, buffered connections and callbacks."
requires-python = ">=3.10"
dependencies = []
keywords = ["reactor", "event loop", "tcp", "server", "networking", "selectors"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
reactornet-echo = "reactornet.echo_server:main"

[tool.hatch.build.targets.wheel]
packages = ["reactornet"]

[tool.pytest.ini_options]
addopts = "-ra"
