[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lktool"
version = "2.4.10"
description = "Helpers for real-time media projects: CLI config, hosted agent packaging, templates and load-test bookkeeping"
requires-python = ">=3.11"
keywords = [
    "realtime",
    "agents",
    "webrtc",
    "load-testing",
    "dockerfile",
    "tarball",
    "templates",
    "cli-config",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "pyyaml",
    "requests",
    "python-dotenv",
    "tomli-w",
    "tqdm",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["lktool"]

[tool.hatch.build.targets.sdist]
include = ["lktool", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
ignore_missing_imports = true
