[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvutils"
version = "0.1.0"
description = "A small Unix-style toolbox: a minimal shell, core utilities, grep, a free-list allocator and an Sv39 page-table model"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "unix", "coreutils", "grep", "page-table", "allocator", "virtio"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-sh = "xvutils.sh:main"
xv-grep = "xvutils.grep:main"
xv-cat = "xvutils.coreutils:main_cat"
xv-echo = "xvutils.coreutils:main_echo"
xv-wc = "xvutils.coreutils:main_wc"
xv-ls = "xvutils.coreutils:main_ls"
xv-mkdir = "xvutils.coreutils:main_mkdir"
xv-rm = "xvutils.coreutils:main_rm"
xv-ln = "xvutils.coreutils:main_ln"
xv-kill = "xvutils.coreutils:main_kill"
xv-threadtest = "xvutils.threadtest:main"
xv-stressfs = "xvutils.stressfs:main"

[tool.hatch.build.targets.wheel]
packages = ["xvutils"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
