from setuptools import setup
from setuptools import find_packages

long_description = open('README.md').read()

setup(
    name="aiohc",
    version='0.1.0',
    description="Async HTTP client with a concurrent request dispatcher",
    python_requires='>=3.8',
    install_requires=[
        'certifi',
        'dnspython',
    ],
    extras_require={
        'tests': [
            'pytest',
            'pytest-asyncio',
            'uvicorn',
            'starlette',
        ],
    },
    packages=find_packages(include=['aiohc', 'aiohc.*']),
    include_package_data=True,
    package_data={'aiohc': ['*.ini']},
    entry_points={
        'console_scripts': [
            'aiohc-dispatch=aiohc.cli:main',
        ],
    },
    long_description=long_description,
    long_description_content_type='text/markdown'
)
