[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rawjpegkit"
version = "0.1.0"
description = "Raw image file handling (PAM/PNM, Y4M, test patterns) and baseline JPEG header writing"
requires-python = ">=3.10"
keywords = ["jpeg", "pam", "pnm", "y4m", "image", "raw", "header", "spiff", "jfif"]
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
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rawjpegkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
