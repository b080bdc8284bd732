[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "housingapi"
version = "0.1.0"
description = "Building blocks for an HTTP API of housing listings, housing types, statuses and visit bookings"
requires-python = ">=3.10"
keywords = ["housing", "rental", "rest", "api", "flask", "visits"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask>=2.2",
    "sqlalchemy>=2.0",
    "requests>=2.28",
    "pyjwt>=2.6",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["housingapi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
