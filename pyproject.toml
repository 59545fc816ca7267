[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nanokernel"
version = "0.1.0"
description = "A model of a small teaching kernel: module packer, heap, console, clock, semaphores, pipes, IDT and a tiny shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "education", "heap", "pipes", "semaphores", "shell", "idt"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
nanokernel-pack = "nanokernel.packer:main"
nanoshell = "nanokernel.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["nanokernel"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
