"""terminally lives at <https://github.com/terminally/terminally>.

terminally
----------

Interactive tmux shells behind a line-delimited JSON-RPC tool API.

"""
from setuptools import find_packages, setup

about = {}
with open("src/terminally/__about__.py") as fp:
    exec(fp.read(), about)


def read_requirements(path):
    with open(path) as f:
        return [line for line in f.read().split('\n') if line]


readme = open('README.md', encoding='utf-8').read()

history = open('CHANGES', encoding='utf-8').read()


setup(
    name=about['__title__'],
    version=about['__version__'],
    url=about['__github__'],
    download_url=about['__pypi__'],
    project_urls={
        'Documentation': about['__docs__'],
        'Code': about['__github__'],
        'Issue tracker': about['__tracker__'],
    },
    license=about['__license__'],
    author=about['__author__'],
    author_email=about['__email__'],
    description=about['__description__'],
    long_description=readme + '\n\n' + history,
    long_description_content_type="text/markdown",
    package_dir={'': 'src'},
    packages=find_packages('src'),
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=read_requirements('requirements/base.txt'),
    extras_require={
        'test': read_requirements('requirements/test.txt'),
        'otel': read_requirements('requirements/otel.txt'),
    },
    entry_points={
        'console_scripts': [
            'terminally = terminally.__main__:main',
        ],
    },
    zip_safe=False,
    keywords=about['__title__'],
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Operating System :: MacOS :: MacOS X",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Utilities",
        "Topic :: System :: Shells",
        "Topic :: Terminals",
    ],
)
