[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uiccat"
version = "0.1.0"
description = "Talk to a UICC secure element through a modem's AT commands: build APDUs, parse replies and FCP templates, and manage files on the card."
requires-python = ">=3.10"
dependencies = []
keywords = ["uicc", "sim", "apdu", "at-commands", "fcp", "smart-card", "cgla", "secure-element"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["uiccat"]

[tool.pytest.ini_options]
addopts = "-ra"
