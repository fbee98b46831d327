[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pdstore"
version = "0.1.0"
description = "A small persistent data store with a BST index, a linked repository and parent-child links"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "storage", "index", "binary-search-tree", "records"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pdstore-demo = "pdstore.demo:main"
pdstore-tester = "pdstore.tester:main"

[tool.hatch.build.targets.wheel]
packages = ["pdstore"]

[tool.pytest.ini_options]
addopts = "-ra"
