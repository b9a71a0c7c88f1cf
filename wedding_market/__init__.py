"""Wedding Market - wedding services marketplace API"""

__version__ = "1.0.0"
