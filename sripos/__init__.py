__version__ = version = '0.1.0'
__version_tuple__ = version_tuple = tuple(map(int, version.split('.')))
