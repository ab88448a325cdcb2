[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "midimanager"
version = "1.0.0"
description = "Discover MIDI controllers, verify them by SysEx identity reply, and record the messages they send."
requires-python = ">=3.10"
dependencies = [
    "mido",
]
keywords = ["midi", "sysex", "identity", "launchpad", "controller", "recording"]
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
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
midimanager = "midimanager.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["midimanager"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
