[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "faultkit"
version = "0.1.0"
description = "Fault injection triggers, return-value profiling and error-set evaluation"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "fault injection",
    "testing",
    "triggers",
    "robustness",
    "profiling",
    "error handling",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
faultkit-errordiff = "faultkit.errordiff:main"
faultkit-profiler = "faultkit.profiler:main"

[tool.hatch.build.targets.wheel]
packages = ["faultkit"]

[tool.pytest.ini_options]
addopts = "-ra"
