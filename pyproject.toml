[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lifeofsounds"
version = "0.1.0"
description = "A small HTTPS and WebSocket server for recording, storing and browsing audio sessions"
requires-python = ">=3.10"
keywords = ["http", "https", "websocket", "audio", "server", "mysql"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Multimedia :: Sound/Audio",
]
dependencies = [
    "pymysql",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lifeofsounds = "lifeofsounds.server:main"

[tool.hatch.build.targets.wheel]
packages = ["lifeofsounds"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
