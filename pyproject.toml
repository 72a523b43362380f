[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernio"
version = "0.1.0"
description = "Device registry, device streams, block cache, mount table, ELF loader, console and VirtIO helpers of a small kernel"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "device", "block cache", "elf", "virtio", "filesystem", "ramdisk", "console"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kernio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
