"""
Setup configuration for convgen.

Type-directed converter generation for Python packages.
"""

from setuptools import setup, find_packages
import os


# Read version from package
def get_version():
    """Extract version from package __init__.py"""
    version_file = os.path.join(os.path.dirname(__file__), "convgen", "__init__.py")
    with open(version_file, "r") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip("\"'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    """Read long description from README.md if available"""
    readme_path = os.path.join(os.path.dirname(__file__), "README.md")
    if os.path.exists(readme_path):
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return "convgen: type-directed converter generation for Python packages"


setup(
    name="convgen",
    version=get_version(),
    author="convgen Team",
    author_email="convgen@example.com",
    description="Type-directed converter generation for Python packages",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    url="https://github.com/convgen/convgen",
    packages=find_packages(exclude=["tests*", "examples*", "docs*"]),
    package_data={
        "convgen.codegen.templates": ["python/*.j2"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
    install_requires=[
        "jinja2>=3.0",
        "pyyaml>=6.0",
        "black>=22.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "isort>=5.0",
            "mypy>=0.900",
            "flake8>=4.0",
            "pre-commit>=2.0",
        ],
        "docs": [
            "sphinx>=4.0",
            "sphinx-rtd-theme>=1.0",
            "myst-parser>=0.15",
        ],
    },
    entry_points={
        "console_scripts": [
            "convgen=convgen.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="code-generation, converter, mapper, dataclasses, ast",
)
