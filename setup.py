from pathlib import Path
from setuptools import setup, find_packages

PROJECT_ROOT = Path(__file__).parent.resolve()
EXAMPLES_DIR = PROJECT_ROOT / "examples"

example_files = []
if EXAMPLES_DIR.exists():
    for path in sorted(EXAMPLES_DIR.iterdir()):
        if path.is_file() and path.suffix in {".yaml", ".yml"}:
            example_files.append(str(path.relative_to(PROJECT_ROOT)))

setup(
    name="seqera-batch-env",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    data_files=[("share/seqera-batch-env/examples", example_files)],
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2",
        "PyYAML",
        "typer",
        "rich",
        "cli-core-yo<1.2.1",
        "boto3",
        "botocore",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["seqera-batch=seqera_batch.cli:main"],
    },
)
