from setuptools import setup, find_packages

setup(
    name='docsearch',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'fastapi>=0.110',
        'uvicorn>=0.27',
        'pydantic>=2.5',
        'pydantic-settings>=2.1',
        'python-dotenv>=1.0',
        'httpx>=0.26',
        'beautifulsoup4>=4.12',
        'rank-bm25>=0.2.2',
        'numpy>=1.24',
        'typer>=0.9',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4',
            'pytest-asyncio>=0.23',
        ],
    },
    entry_points={
        'console_scripts': [
            'docsearch=docsearch.cli:app',
        ],
    },
    description='Crawls a documentation site and code example repositories and serves full-text search over them.',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.9',
)
