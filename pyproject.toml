[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simbapcap"
version = "1.0.0"
description = "Read PCAP captures and route MOEX SIMBA market-data packets into a JSON file"
requires-python = ">=3.10"
dependencies = []
keywords = ["pcap", "simba", "moex", "market-data", "sbe", "udp", "json"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Log Analysis",
    "Topic :: System :: Networking :: Monitoring",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
simbapcap-parse = "simbapcap.cli:main"
simbapcap-pipeline = "simbapcap.cli:pipeline_main"

[tool.hatch.build.targets.wheel]
packages = ["simbapcap"]

[tool.hatch.build.targets.sdist]
include = ["simbapcap", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
files = ["simbapcap"]
