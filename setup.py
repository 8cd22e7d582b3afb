# setup.py
from setuptools import setup, find_packages

setup(
    name="silverfish",
    version="0.1.0",
    description="Асинхронный сборщик контактов ресторанов Silverfish",
    packages=find_packages(exclude=("tests", "tests.*")),  # автоматически найдёт папку silverfish
    package_data={"silverfish": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "jinja2>=3.1",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "tldextract>=5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["silverfish=silverfish.cli:cli"],
    },
    python_requires=">=3.11",
)
