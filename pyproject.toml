[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "luminor"
version = "0.1.0"
description = "Accounts, case handling and tenant inquiries for property-management back offices"
requires-python = ">=3.10"
dependencies = [
    "bcrypt",
]
keywords = [
    "property-management",
    "case-handling",
    "accounts",
    "inquiries",
    "read-model",
    "sqlite",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["luminor"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
