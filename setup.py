#!/usr/bin/env python

from setuptools import setup, find_packages

with open('rfnetworks/__init__.py') as fid:
    for line in fid:
        if line.startswith('__version__'):
            VERSION = line.strip().split()[-1][1:-1]
            break

LONG_DESCRIPTION = """
	rfnetworks reads and writes Touchstone files and cascades and de-embeds
	the network parameter matrices they contain.
"""
setup(name='rfnetworks',
	version=VERSION,
	license='new BSD',
	description='Touchstone files and network parameter algebra',
	long_description=LONG_DESCRIPTION,
	packages=find_packages(include=['rfnetworks', 'rfnetworks.*']),
	python_requires='>=3.9',
	install_requires = [
		'numpy',
		'pandas',
		],
	extras_require = {
		'test': ['pytest'],
		},
	package_dir={'rfnetworks':'rfnetworks'},
	include_package_data = True,
	)
