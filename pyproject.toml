[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "overseer"
version = "0.1.0"
description = "Asyncio building blocks for supervised tasks: start notification, termination reporting, restart tolerance and cleanup."
requires-python = ">=3.11"
dependencies = []
keywords = ["asyncio", "supervisor", "supervision", "tasks", "restart", "fault-tolerance"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["overseer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
