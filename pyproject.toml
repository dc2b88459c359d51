[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simpletx"
version = "0.1.0"
description = "Stick-to-CRSF radio transmitter logic: calibration, channel mapping and ELRS command packets"
requires-python = ">=3.10"
keywords = ["crsf", "elrs", "expresslrs", "rc", "transmitter", "ppm", "serial"]
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
    "Topic :: Software Development :: Embedded Systems",
]
dependencies = [
    "pyserial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
simpletx = "simpletx.transmitter:main"

[tool.hatch.build.targets.wheel]
packages = ["simpletx"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
