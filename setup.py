from setuptools import setup

__version__ = "1.0.0"
__author__ = "Maxime Lamothe-Brassard ( Refraction Point, Inc )"
__author_email__ = "maxime@refractionpoint.com"
__license__ = "Apache v2"
__copyright__ = "Copyright (c) 2020 Refraction Point, Inc"

setup( name = 'loopback-oauth',
       version = __version__,
       description = 'Local loopback redirect receiver for OAuth 2.0 authorization code flows',
       author = __author__,
       author_email = __author_email__,
       license = __license__,
       packages = [ 'loopback_oauth' ],
       zip_safe = True,
       python_requires = '>=3.8',
       install_requires = [ 'pyyaml', 'rich' ],
       extras_require = {
           'test': [ 'pytest', 'requests' ],
       },
       long_description = 'Local HTTP endpoint receiving the authorization redirect of an OAuth 2.0 authorization code flow on a workstation.',
       entry_points = {
           'console_scripts': [
               'loopback-oauth=loopback_oauth.__main__:main',
           ],
       },
)
