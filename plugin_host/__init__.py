
# standard imports

# third-part imports

# local imports

__version__ = '0.1.0'
