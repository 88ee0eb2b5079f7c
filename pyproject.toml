[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "websock"
version = "0.26.5"
description = "WebSocket (RFC 6455) framing, messages, handshake checks and a blocking server"
requires-python = ">=3.10"
dependencies = []
keywords = ["websocket", "websockets", "rfc6455", "framing", "handshake"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["websock"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
