[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mqttkit"
version = "0.1.0"
description = "Asyncio building blocks for MQTT: topic filters, wire field codecs, errors and ordered framed dispatch"
requires-python = ">=3.10"
dependencies = []
keywords = ["mqtt", "asyncio", "protocol", "topic", "iot", "messaging"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["mqttkit"]

[tool.pytest.ini_options]
addopts = "-ra"
