[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "robocalib"
version = "0.1.0"
description = "Kinematic chain models, calibration residual blocks and magnetometer hard-iron calibration for robot sensors"
requires-python = ">=3.10"
keywords = ["robotics", "calibration", "kinematics", "magnetometer", "least-squares", "camera"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
robocalib-to-rpy = "robocalib.tools:main"
robocalib-magnetometer = "robocalib.magnetometer:main"

[tool.hatch.build.targets.wheel]
packages = ["robocalib"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
