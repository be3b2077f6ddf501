#!/usr/bin/env python3
# vim: ts=4 et sw=4 sts=4 :

from setuptools import setup
import os

pkg_root = os.path.abspath(os.path.dirname(__file__))
readme_md = os.path.join(pkg_root, "README.md")


def getLongDesc():

    if not os.path.exists(readme_md):
        return "no long description available"

    with open(readme_md, 'r') as md_file:
        return md_file.read()


setup(
    name = 'roomsync',
    version = '0.1.0',
    description = 'roomsync maintains an ordered, filtered Matrix room list from sync updates',
    long_description = getLongDesc(),
    long_description_content_type = 'text/markdown',
    author = 'Matthias Gerstner',
    author_email = 'matthias.gerstner@nefkom.net',
    license = 'GPL2',
    keywords = 'Matrix messaging chat sync room list',
    packages = ['roomsync'],
    python_requires = '>=3.7',
    install_requires = ["requests"],
    extras_require = {
        'test': ['pytest']
    },
    classifiers = [
        'Intended Audience :: Developers',
        'License :: OSI Approved :: GNU General Public License v2 (GPLv2)',
        'Programming Language :: Python :: 3.7',
        'Topic :: Communications :: Chat'
    ],
    scripts = [ 'bin/roomsync' ]
)
