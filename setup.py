from setuptools import setup, find_packages

setup(
    name="postauto",
    version="1.0.0",
    packages=find_packages(include=["postauto", "postauto.*"]),
    install_requires=[
        "playwright>=1.40.0",
        "pyyaml>=5.4",
        "jsonschema>=4.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    package_data={
        "postauto": ["schemas/*.json", "maps/*.yaml"],
    },
    entry_points={
        "console_scripts": [
            "postauto=postauto.cli:main",
        ],
    },
)
