"""
AI Playground - chat with hosted language models

Setup script for installation.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# Read requirements
requirements_path = Path(__file__).parent / "requirements.txt"
requirements = []
if requirements_path.exists():
    requirements = [
        line.strip()
        for line in requirements_path.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]

setup(
    name="aiplayground",
    version="0.1.0",
    author="AI Playground Contributors",
    description="Stream completions from OpenAI, Anthropic, Gemini, Hugging Face, Cohere, Replicate and Fireworks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["aiplayground", "aiplayground.*"]),
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "tomli_w>=1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "aiplayground=aiplayground.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    keywords="ai llm streaming openai anthropic gemini cohere replicate huggingface",
)
