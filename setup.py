from setuptools import find_packages, setup

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

setup(
    name="epub-reader-core",
    description="Parse EPUB archives into chapters, cleaned display/speech text, images and cover",
    license="GPL 3.0",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'epub-reader = epub_reader.cli:main',
        ]
    },
)
