[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smartalarm"
version = "0.1.0"
description = "Reminder and alarm engine with schedules, tone synthesis and a local command-line control channel"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "alarm",
    "reminder",
    "notification",
    "scheduler",
    "interval",
    "tone",
    "cli",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
smartalarm-cli = "smartalarm.command_client:main"

[tool.hatch.build.targets.wheel]
packages = ["smartalarm"]

[tool.hatch.build.targets.sdist]
include = ["smartalarm", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
