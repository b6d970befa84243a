[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simplecomputer"
version = "0.1.0"
description = "A small teaching computer with a terminal console, an assembler and a Basic translator"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "simple computer", "assembler", "basic", "education", "terminal"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
simplecomputer = "simplecomputer.console:main"
sat = "simplecomputer.assembler:main"
sbt = "simplecomputer.basic:main"

[tool.hatch.build.targets.wheel]
packages = ["simplecomputer"]

[tool.pytest.ini_options]
addopts = "-ra"
