#!/usr/bin/python3

from setuptools import setup


with open("README.md", "r") as f:
    long_description = f.read()


setup(name='autopart',
      version='0.1.0',
      description='Python module for proposing the storage layout of a system installation',
      long_description=long_description,
      long_description_content_type="text/markdown",
      packages=['autopart', 'autopart.devices', 'autopart.formats', 'autopart.proposal'],
      # bytesize comes from the libbytesize python3 bindings of the distribution
      install_requires=['PyYAML'],
      extras_require={'tests': ['pytest']},
      classifiers=["Development Status :: 3 - Alpha",
                   "Intended Audience :: Developers",
                   "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
                   "Programming Language :: Python :: 3",
                   "Operating System :: POSIX :: Linux"]
     )
