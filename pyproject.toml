[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gritwit"
version = "0.1.0"
description = "Workout tracking web application: exercise library, WODs, scoring, leaderboards and streaks."
requires-python = ">=3.10"
dependencies = [
    "flask",
]
keywords = ["fitness", "workout", "wod", "leaderboard", "sqlite", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
gritwit = "gritwit.web:main"

[tool.hatch.build.targets.wheel]
packages = ["gritwit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
