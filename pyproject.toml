[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mgedit"
version = "0.1.0"
description = "Building blocks of a small Emacs-style text editor: command table, screen image and redisplay, echo line, file I/O and a startup-file interpreter"
requires-python = ">=3.10"
dependencies = []
keywords = ["editor", "emacs", "redisplay", "keymap", "minibuffer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Editors",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mgedit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
