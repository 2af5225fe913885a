[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "loadtools"
version = "0.1.0"
description = "Helpers for queueing load tests and reporting results as xUnit XML, plus tools for managing prebuilt worker images"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["load testing", "xunit", "junit", "benchmark", "container images"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
delete-prebuilt-workers = "loadtools.delete_prebuilt_workers:main"
prepare-prebuilt-workers = "loadtools.prepare_prebuilt_workers:main"

[tool.hatch.build.targets.wheel]
packages = ["loadtools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
