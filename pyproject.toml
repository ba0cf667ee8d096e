[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clauditor"
version = "0.1.0"
description = "Track active Claude Code billing windows across multiple sessions"
requires-python = ">=3.10"
keywords = ["claude", "usage", "tokens", "billing", "monitoring", "jsonl"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
clauditor = "clauditor.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["clauditor"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
