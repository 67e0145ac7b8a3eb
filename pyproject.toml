[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smarthome"
version = "1.0.0"
description = "Building blocks for a smart-home client and server: packet framing, connection pooling, avatar storage and message dispatch"
requires-python = ">=3.10"
keywords = ["smart-home", "websocket", "http", "packets", "connection-pool", "avatars"]
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
    "Topic :: Home Automation",
]
dependencies = [
    "pillow",
    "requests",
    "websocket-client",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["smarthome"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
