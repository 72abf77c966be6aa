from setuptools import setup, find_packages

with open("README.md", 'r') as f:
    long_description = f.read()

setup(
    name="gdl",
    description="Downloading every NCBI genome assembly under a taxon",
    long_description=long_description,
    long_description_content_type='text/markdown',
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires='>=3.9',
    install_requires=[
        'pandas',
        'requests',
        'tqdm',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'gdl=gdl.download_genomes:main',
        ],
    },
)
