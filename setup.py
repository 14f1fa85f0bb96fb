# setup.py
from setuptools import setup, find_packages

setup(
    name="site_docgen",
    version="0.1.0",
    description="Same-origin site crawler that builds a sitemap and documentation from page content",
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"site_docgen": ["templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "Jinja2>=3.1",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-docgen=site_docgen.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
