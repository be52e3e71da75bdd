[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "perpbook"
version = "0.1.0"
description = "Crit-bit order book sides, an event ring buffer and oracle account decoding for perpetual futures markets"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "order book",
    "perpetual futures",
    "crit-bit tree",
    "event queue",
    "oracle",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["perpbook"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
