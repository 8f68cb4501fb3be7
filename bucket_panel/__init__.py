"""Administrative panel for files stored in an object-storage bucket behind a CDN"""

__version__ = "0.1.0"
