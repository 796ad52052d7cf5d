[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "subsagg"
version = "0.1.0"
description = "WSGI service that stores user subscriptions in SQLite and totals their cost over a period"
requires-python = ">=3.10"
dependencies = [
    "werkzeug",
    "pyyaml",
]
keywords = ["subscriptions", "aggregation", "rest", "wsgi", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
subsagg = "subsagg.app:main"

[tool.hatch.build.targets.wheel]
packages = ["subsagg"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
