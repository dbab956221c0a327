[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "orderservice"
version = "0.1.0"
description = "HTTP service for food orders, menu lookup and order payment backed by a SQL database"
requires-python = ">=3.10"
keywords = ["orders", "food delivery", "payments", "http", "flask", "sqlalchemy", "migrations"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "sqlalchemy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
orderservice = "orderservice.server:main"

[tool.hatch.build.targets.wheel]
packages = ["orderservice"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
